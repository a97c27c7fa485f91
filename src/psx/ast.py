"""Node types for parsed markup regions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from psx.tokens import Span


@dataclass(frozen=True, slots=True)
class Text:
    """Literal text run, whitespace already normalized."""

    value: str
    span: Span


@dataclass(frozen=True, slots=True)
class Expr:
    """Raw Python expression source captured between braces.

    ``regions`` holds markup nested inside the expression, with absolute spans.
    """

    source: str
    span: Span
    regions: tuple[Region, ...] = ()


class AttrKind(Enum):
    BOOL = auto()  # disabled
    STRING = auto()  # href="/"
    EXPR = auto()  # href={url} or {spread}


@dataclass(frozen=True, slots=True)
class Attr:
    """A start-tag attribute.

    ``key`` is empty only for a spread ``{expr}`` in attribute position.
    """

    key: str
    kind: AttrKind
    value: str
    span: Span
    value_span: Span
    regions: tuple[Region, ...] = ()


@dataclass(frozen=True, slots=True)
class Element:
    """A tag with ordered attributes and children."""

    tag: str
    attrs: tuple[Attr, ...]
    children: tuple[Text | Expr | Element, ...]
    self_closing: bool
    span: Span


@dataclass(frozen=True, slots=True)
class Region:
    """A parsed markup region and the exact source span it replaces."""

    element: Element
    span: Span


Node = Text | Expr | Element
