"""Host scanner: walks Python source and finds where markup regions begin.

This is not a Python lexer. It only knows enough of the host grammar to skip
string literals and comments, to balance brackets, and to tell whether the
previous significant token ended an operand. A ``<`` followed by a letter
starts markup only when an operand is *not* expected to be complete, so
``a < b`` and ``a<b`` stay comparisons while ``return <p/>`` and
``f(<p/>)`` are markup.
"""

from __future__ import annotations

import logging

from psx.ast import Region
from psx.errors import ParseError
from psx.tokens import (
    START,
    Position,
    Span,
    ends_operand,
    is_ident_char,
    is_ident_start,
    is_interpolating_prefix,
    is_string_prefix,
    is_tag_start,
)

logger = logging.getLogger(__name__)

# Longest first, so "<<=" wins over "<<" and "<".
_OPERATORS: tuple[str, ...] = (
    "**=",
    "//=",
    ">>=",
    "<<=",
    "...",
    "->",
    ":=",
    "**",
    "//",
    "<<",
    ">>",
    "<=",
    ">=",
    "==",
    "!=",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    "@=",
)


class SourceReader:
    """Character cursor with line/column tracking, shared by scanner and parser."""

    def __init__(self, source: str, filename: str = "input.psx", start: Position = START) -> None:
        self._source = source
        self._filename = filename
        self._pos = start.offset
        self._line = start.line
        self._col = start.column

    @property
    def position(self) -> Position:
        return Position(self._line, self._col, self._pos)

    def _at_end(self) -> bool:
        return self._pos >= len(self._source)

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _startswith(self, text: str) -> bool:
        return self._source.startswith(text, self._pos)

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return ch

    def _sync(self, other: SourceReader) -> None:
        """Continue from where another reader over the same source stopped."""
        self._pos = other._pos
        self._line = other._line
        self._col = other._col

    def _error(
        self,
        message: str,
        start: Position | None = None,
        end: Position | None = None,
    ) -> ParseError:
        here = self.position
        if start is None:
            start = here
        if end is None:
            end = here if here.offset > start.offset else start
        return ParseError(message, Span(start, end), self._source, self._filename)


class HostScanner(SourceReader):
    """Scan Python source, recording every markup region it meets.

    In top-level mode the scanner runs to end of input. In nested mode it
    scans the inside of a ``{...}`` brace expression and stops before the
    unmatched closing ``}``.
    """

    def __init__(
        self,
        source: str,
        filename: str = "input.psx",
        start: Position = START,
        *,
        nested: bool = False,
        markup: bool = True,
    ) -> None:
        super().__init__(source, filename, start)
        self._nested = nested
        self._markup = markup
        self._depth = 0
        self._operand = False
        self.regions: list[Region] = []
        self.significant = False

    def scan(self) -> list[Region]:
        """Scan to end of input and return the markup regions found."""
        while not self._at_end():
            self._step()
        return self.regions

    def scan_expression(self, open_pos: Position) -> None:
        """Scan a brace expression body, stopping before its closing '}'."""
        while True:
            if self._at_end():
                raise self._error("unterminated expression: expected '}'", open_pos)
            if self._peek() == "}" and self._depth == 0:
                return
            self._step()

    def scan_field(self, open_pos: Position) -> None:
        """Scan the expression of an f-string replacement field.

        Stops before the closing '}' or before a top-level '!' conversion or
        ':' format spec, which are not Python code.
        """
        while True:
            if self._at_end():
                raise self._error("unterminated expression: expected '}'", open_pos)
            ch = self._peek()
            if self._depth == 0 and (ch == "}" or (ch in "!:" and self._peek(1) != "=")):
                return
            self._step()

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def _step(self) -> None:
        ch = self._peek()

        if ch == "\n":
            self._advance()
            if self._depth == 0 and not self._nested:
                self._operand = False
            return

        if ch in " \t\r\f":
            self._advance()
            return

        if ch == "\\":
            # Line continuation
            self._advance()
            if self._startswith("\r\n"):
                self._advance()
            if self._peek() == "\n":
                self._advance()
            return

        if ch == "#":
            while not self._at_end() and self._peek() != "\n":
                self._advance()
            return

        self.significant = True

        if ch in "'\"":
            self._skip_string("", self.position)
            self._operand = True
            return

        if is_ident_start(ch):
            start = self.position
            word = self._read_word()
            if self._peek() in ("'", '"') and is_string_prefix(word):
                self._skip_string(word, start)
                self._operand = True
            else:
                self._operand = ends_operand(word)
            return

        if ch.isdigit() or (ch == "." and self._peek(1).isdigit()):
            self._skip_number()
            self._operand = True
            return

        if ch in "([{":
            self._advance()
            self._depth += 1
            self._operand = False
            return

        if ch in ")]}":
            self._advance()
            self._depth = max(0, self._depth - 1)
            self._operand = True
            return

        if ch == "<" and not self._operand and self._markup and is_tag_start(self._peek(1)):
            self._scan_region()
            self._operand = True
            return

        for op in _OPERATORS:
            if self._startswith(op):
                for _ in op:
                    self._advance()
                break
        else:
            self._advance()
        self._operand = False

    def _read_word(self) -> str:
        chars = []
        while not self._at_end() and is_ident_char(self._peek()):
            chars.append(self._advance())
        return "".join(chars)

    def _skip_number(self) -> None:
        prev = ""
        while not self._at_end():
            ch = self._peek()
            if ch.isalnum() or ch in "._":
                prev = self._advance()
            elif ch in "+-" and prev in ("e", "E") and not self._is_hex_literal():
                prev = self._advance()
            else:
                break

    def _is_hex_literal(self) -> bool:
        # Walk back to the start of the current number
        idx = self._pos - 1
        while idx > 0 and (self._source[idx - 1].isalnum() or self._source[idx - 1] in "._"):
            idx -= 1
        return self._source[idx : idx + 2].lower() == "0x"

    # ------------------------------------------------------------------
    # Strings
    # ------------------------------------------------------------------

    def _skip_string(self, prefix: str, start: Position) -> None:
        quote = self._peek()
        triple = self._startswith(quote * 3)
        interpolating = is_interpolating_prefix(prefix)
        for _ in range(3 if triple else 1):
            self._advance()

        while True:
            if self._at_end():
                raise self._error("unterminated string literal", start)
            ch = self._peek()
            if ch == "\\":
                self._advance()
                if not self._at_end():
                    self._advance()
                continue
            if triple and self._startswith(quote * 3):
                for _ in range(3):
                    self._advance()
                return
            if not triple and ch == quote:
                self._advance()
                return
            if not triple and ch == "\n":
                raise self._error("unterminated string literal", start)
            if interpolating and ch == "{":
                if self._peek(1) == "{":
                    self._advance()
                    self._advance()
                    continue
                self._skip_replacement_field()
                continue
            self._advance()

    def _skip_replacement_field(self) -> None:
        open_pos = self.position
        self._advance()  # consume '{'
        inner = HostScanner(
            self._source, self._filename, self.position, nested=True, markup=False
        )
        inner.scan_field(open_pos)
        self._sync(inner)
        if self._peek() == "!":
            # Conversion: a name up to the spec or the closing brace
            while not self._at_end() and self._peek() not in ":}":
                self._advance()
        if self._peek() == ":":
            self._advance()
            self._skip_format_spec()
        if self._at_end():
            raise self._error("unterminated expression: expected '}'", open_pos)
        self._advance()  # consume '}'

    def _skip_format_spec(self) -> None:
        # Literal text; only '{' opens a nested field
        while not self._at_end():
            ch = self._peek()
            if ch == "}":
                return
            if ch == "{":
                self._skip_replacement_field()
                continue
            self._advance()

    # ------------------------------------------------------------------
    # Markup
    # ------------------------------------------------------------------

    def _scan_region(self) -> None:
        from psx.parser import Parser

        parser = Parser(self._source, self._filename, self.position)
        region = parser.parse_region()
        self._sync(parser)
        self.regions.append(region)


def find_regions(source: str, filename: str = "input.psx") -> list[Region]:
    """Convenience function: return every top-level markup region in source."""
    regions = HostScanner(source, filename).scan()
    logger.debug("%s: %d markup region(s)", filename, len(regions))
    return regions
