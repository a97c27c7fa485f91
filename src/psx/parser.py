"""Markup parser. Reads one tag region from raw source into an Element tree."""

from __future__ import annotations

from psx.ast import Attr, AttrKind, Element, Expr, Region, Text
from psx.scanner import HostScanner, SourceReader
from psx.tokens import Position, Span, is_attr_char, is_attr_start, is_tag_char, is_tag_start


class Parser(SourceReader):
    """Recursive descent parser over raw characters, starting at a '<'.

    Brace expressions are handed to a nested HostScanner, which knows how to
    skip Python strings and comments and records any markup nested inside.
    """

    def parse_region(self) -> Region:
        if self._peek() != "<" or not is_tag_start(self._peek(1)):
            raise self._error("expected a start tag")
        element = self._parse_element()
        return Region(element, element.span)

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def _parse_element(self) -> Element:
        start = self.position
        self._advance()  # consume '<'
        tag = self._read_name(is_tag_char)

        attrs: list[Attr] = []
        while True:
            self._skip_ws()
            if self._at_end():
                raise self._error(f"unterminated start tag <{tag}>", start)

            ch = self._peek()
            if ch == "/":
                if self._peek(1) != ">":
                    raise self._error(f"expected '/>' to close start tag <{tag}>")
                self._advance()
                self._advance()
                return Element(tag, tuple(attrs), (), True, Span(start, self.position))

            if ch == ">":
                self._advance()
                break

            if ch == "{":
                attrs.append(self._parse_spread_attr(tag))
            elif is_attr_start(ch):
                attrs.append(self._parse_attr(tag))
            else:
                raise self._error(f"unexpected character {ch!r} in start tag <{tag}>")

        open_tag = Span(start, self.position)
        children = self._parse_children(tag, open_tag)
        return Element(tag, tuple(attrs), tuple(children), False, Span(start, self.position))

    def _parse_end_tag(self, tag: str) -> None:
        start = self.position
        self._advance()  # consume '<'
        self._advance()  # consume '/'
        name = self._read_name(is_tag_char)
        self._skip_ws()
        if self._at_end():
            raise self._error(f"unterminated end tag </{name}", start)
        if self._peek() != ">":
            raise self._error(f"expected '>' to close end tag </{name}")
        self._advance()
        if name != tag:
            raise self._error(f"mismatched end tag: expected </{tag}>, found </{name}>", start)

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def _parse_attr(self, tag: str) -> Attr:
        start = self.position
        key = self._read_name(is_attr_char)
        key_end = self.position
        self._skip_ws()

        if self._peek() != "=":
            return Attr(key, AttrKind.BOOL, "", Span(start, key_end), Span(key_end, key_end))

        self._advance()  # consume '='
        self._skip_ws()
        ch = self._peek()

        if ch in ("'", '"'):
            quote_pos = self.position
            self._advance()
            value_start = self.position
            chars: list[str] = []
            while not self._at_end() and self._peek() != ch:
                chars.append(self._advance())
            if self._at_end():
                raise self._error(f"unterminated value for attribute '{key}'", quote_pos)
            value_end = self.position
            self._advance()  # consume closing quote
            return Attr(
                key,
                AttrKind.STRING,
                "".join(chars),
                Span(start, self.position),
                Span(value_start, value_end),
            )

        if ch == "{":
            source, value_span, regions, significant = self._parse_braced()
            if not significant:
                raise self._error(
                    f"empty expression for attribute '{key}'", value_span.start, value_span.end
                )
            return Attr(
                key,
                AttrKind.EXPR,
                source,
                Span(start, self.position),
                value_span,
                regions,
            )

        raise self._error(f"expected '\"' or '{{' after '{key}=' in <{tag}>")

    def _parse_spread_attr(self, tag: str) -> Attr:
        start = self.position
        source, value_span, regions, significant = self._parse_braced()
        if not significant:
            raise self._error(
                f"empty attribute expression in <{tag}>", value_span.start, value_span.end
            )
        return Attr("", AttrKind.EXPR, source, Span(start, self.position), value_span, regions)

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------

    def _parse_children(self, tag: str, open_tag: Span) -> list[Text | Expr | Element]:
        children: list[Text | Expr | Element] = []
        text_parts: list[str] = []
        text_start: Position | None = None

        def flush() -> None:
            nonlocal text_start
            if text_parts:
                assert text_start is not None
                value = normalize_text("".join(text_parts))
                if value:
                    children.append(Text(value, Span(text_start, self.position)))
                text_parts.clear()
                text_start = None

        while True:
            if self._at_end():
                raise self._error(
                    f"missing end tag </{tag}> before end of input", open_tag.start, open_tag.end
                )

            ch = self._peek()

            if ch == "<" and self._peek(1) == "/":
                flush()
                self._parse_end_tag(tag)
                return children

            if ch == "<" and is_tag_start(self._peek(1)):
                flush()
                children.append(self._parse_element())
                continue

            if ch == "{":
                flush()
                source, span, regions, significant = self._parse_braced()
                # A brace holding only a comment is dropped
                if significant:
                    children.append(Expr(source, span, regions))
                continue

            if ch == "}":
                raise self._error("unexpected '}' in text; write {'}'} for a literal brace")

            if text_start is None:
                text_start = self.position
            text_parts.append(self._advance())

    # ------------------------------------------------------------------
    # Brace expressions
    # ------------------------------------------------------------------

    def _parse_braced(self) -> tuple[str, Span, tuple[Region, ...], bool]:
        """Read '{expr}', returning (source, span of source, nested regions, significant)."""
        open_pos = self.position
        self._advance()  # consume '{'
        body_start = self.position

        scanner = HostScanner(self._source, self._filename, body_start, nested=True)
        scanner.scan_expression(open_pos)
        body_end = scanner.position
        self._sync(scanner)
        self._advance()  # consume '}'

        source = self._source[body_start.offset : body_end.offset]
        return source, Span(body_start, body_end), tuple(scanner.regions), scanner.significant

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _read_name(self, allowed) -> str:
        chars = []
        while not self._at_end() and allowed(self._peek()):
            chars.append(self._advance())
        return "".join(chars)

    def _skip_ws(self) -> None:
        while not self._at_end() and self._peek() in " \t\r\n\f":
            self._advance()


def normalize_text(raw: str) -> str:
    """Collapse markup text whitespace the way JSX does.

    Text without a newline is kept as is. Otherwise lines are trimmed on
    their inner edges, blank lines dropped, and the rest joined by a space.
    """
    if "\n" not in raw:
        return raw
    lines = raw.replace("\r\n", "\n").split("\n")
    last = len(lines) - 1
    kept: list[str] = []
    for i, line in enumerate(lines):
        if i > 0:
            line = line.lstrip(" \t\r\f")
        if i < last:
            line = line.rstrip(" \t\r\f")
        if line:
            kept.append(line)
    return " ".join(kept)


def parse_region(source: str, offset: int = 0, filename: str = "input.psx") -> Region:
    """Convenience function: parse the region whose '<' is at *offset*."""
    line = source.count("\n", 0, offset) + 1
    column = offset - (source.rfind("\n", 0, offset) + 1) + 1
    return Parser(source, filename, Position(line, column, offset)).parse_region()
