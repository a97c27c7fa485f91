"""Whole-file compilation: scan, lower each region, splice, then format."""

from __future__ import annotations

import logging
import re
from os import PathLike

import black

from psx.context import ScopeIndex
from psx.errors import FormatError, LowerError, ParseError
from psx.lower import lower_source, splice
from psx.scanner import find_regions
from psx.tokens import Position, Span

logger = logging.getLogger(__name__)

DEFAULT_LINE_LENGTH = 88

_BLACK_POSITION = re.compile(r":\s*(\d+):(\d+):")


def compile_source(
    source: str,
    filename: str = "input.psx",
    *,
    line_length: int = DEFAULT_LINE_LENGTH,
) -> str:
    """Rewrite every markup region in source and return formatted Python."""
    regions = find_regions(source, filename)
    scopes = ScopeIndex.build(source, regions)

    replacements: list[str] = []
    for region in regions:
        ctx = scopes.context_at(region.span.start)
        try:
            replacements.append(lower_source([region.element], ctx))
        except LowerError as exc:
            raise exc.with_source(source, filename) from None

    rewritten = splice(source, 0, regions, replacements)
    return format_source(rewritten, filename, line_length=line_length)


def compile_file(
    path: str | PathLike[str],
    data: bytes,
    *,
    line_length: int = DEFAULT_LINE_LENGTH,
) -> bytes:
    """Compile one file's bytes. *path* is only used to annotate errors."""
    filename = str(path)
    try:
        source = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        line = data.count(b"\n", 0, exc.start) + 1
        pos = Position(line, 1, exc.start)
        raise ParseError(
            f"source is not valid UTF-8: {exc.reason}", Span(pos, pos), "", filename
        ) from None
    output = compile_source(source, filename, line_length=line_length)
    logger.debug("compiled %s (%d -> %d bytes)", filename, len(data), len(output))
    return output.encode("utf-8")


def format_source(
    text: str,
    filename: str = "input.psx",
    *,
    line_length: int = DEFAULT_LINE_LENGTH,
) -> str:
    """Format rewritten source with black."""
    try:
        return black.format_str(text, mode=black.Mode(line_length=line_length))
    except black.InvalidInput as exc:
        raise FormatError(
            f"generated source does not parse: {exc}",
            _black_span(text, str(exc)),
            text,
            filename,
        ) from None


def _black_span(text: str, message: str) -> Span | None:
    """Extract the 'line:column' black reports, as a span into text."""
    m = _BLACK_POSITION.search(message)
    if m is None:
        return None
    line = int(m.group(1))
    column = int(m.group(2)) + 1
    lines = text.split("\n")
    offset = sum(len(s) + 1 for s in lines[: line - 1]) + column - 1
    pos = Position(line, column, offset)
    return Span(pos, pos)
