"""Source positions and character classification helpers."""

from __future__ import annotations

import keyword
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based character offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Span:
    """Source range from start to end position."""

    start: Position
    end: Position


START = Position(1, 1, 0)

# Keywords after which an expression is expected, so a following '<' opens markup
# rather than comparing against an operand.
EXPRESSION_KEYWORDS: frozenset[str] = frozenset(
    {
        "and",
        "assert",
        "await",
        "del",
        "elif",
        "else",
        "for",
        "from",
        "if",
        "in",
        "is",
        "lambda",
        "not",
        "or",
        "raise",
        "return",
        "while",
        "with",
        "yield",
    }
)

# Keywords that are values and therefore end an operand.
VALUE_KEYWORDS: frozenset[str] = frozenset({"True", "False", "None"})

STRING_PREFIX_CHARS = frozenset("rRbBuUfFtT")
_INTERPOLATING_PREFIX_CHARS = frozenset("fFtT")


def is_tag_start(ch: str) -> bool:
    """Return True if ch may begin a tag name (ASCII letter)."""
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def is_tag_char(ch: str) -> bool:
    """Return True if ch may continue a tag name."""
    return is_tag_start(ch) or ch.isdigit() or ch in "-_.:"


def is_attr_start(ch: str) -> bool:
    return is_tag_start(ch) or ch in "_@:"


def is_attr_char(ch: str) -> bool:
    return is_tag_char(ch) or ch == "@"


def is_ident_start(ch: str) -> bool:
    return ch == "_" or ch.isalpha()


def is_ident_char(ch: str) -> bool:
    return ch == "_" or ch.isalnum()


def is_string_prefix(word: str) -> bool:
    """Return True if word is a valid Python string prefix (r, b, f, rb, ...)."""
    if not word or len(word) > 2:
        return False
    if any(ch not in STRING_PREFIX_CHARS for ch in word):
        return False
    lowered = word.lower()
    if len(lowered) == 2:
        return lowered in {"rb", "br", "rf", "fr", "rt", "tr"}
    return True


def is_interpolating_prefix(word: str) -> bool:
    """Return True if a string with this prefix has {replacement} fields."""
    return any(ch in _INTERPOLATING_PREFIX_CHARS for ch in word)


def ends_operand(word: str) -> bool:
    """Return True if an identifier-like word leaves the scanner after an operand."""
    if word in VALUE_KEYWORDS:
        return True
    if word in EXPRESSION_KEYWORDS or keyword.iskeyword(word):
        return False
    return True
