"""--debug tree dump to stderr."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import TextIO

from psx.ast import Attr, AttrKind, Element, Expr, Region, Text


def dump_regions(regions: Iterable[Region], *, file: TextIO = sys.stderr) -> None:
    """Print a human-readable tree for each region to *file*."""
    for region in regions:
        start = region.span.start
        file.write(f"Region {start.line}:{start.column}\n")
        _dump_element(region.element, 1, file)


def dump_tree(element: Element, *, file: TextIO = sys.stderr) -> None:
    _dump_element(element, 0, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_element(el: Element, depth: int, f: TextIO) -> None:
    suffix = " (self-closing)" if el.self_closing else ""
    f.write(f"{_indent(depth)}Element <{el.tag}>{suffix}\n")
    for attr in el.attrs:
        _dump_attr(attr, depth + 1, f)
    for child in el.children:
        if isinstance(child, Element):
            _dump_element(child, depth + 1, f)
        elif isinstance(child, Expr):
            _dump_expr(child, depth + 1, f)
        elif isinstance(child, Text):
            f.write(f"{_indent(depth + 1)}Text {child.value!r}\n")


def _dump_attr(attr: Attr, depth: int, f: TextIO) -> None:
    if not attr.key:
        f.write(f"{_indent(depth)}Spread {{{attr.value.strip()}}}\n")
    elif attr.kind is AttrKind.BOOL:
        f.write(f"{_indent(depth)}Attr {attr.key}\n")
    elif attr.kind is AttrKind.STRING:
        f.write(f"{_indent(depth)}Attr {attr.key}={attr.value!r}\n")
    else:
        f.write(f"{_indent(depth)}Attr {attr.key}={{{attr.value.strip()}}}\n")
    for region in attr.regions:
        _dump_element(region.element, depth + 1, f)


def _dump_expr(node: Expr, depth: int, f: TextIO) -> None:
    f.write(f"{_indent(depth)}Expr {{{node.source.strip()}}}\n")
    for region in node.regions:
        _dump_element(region.element, depth + 1, f)
