"""Tests for markup parse error messages and positions."""

from __future__ import annotations

import pytest

from psx.errors import ParseError
from psx.parser import parse_region
from psx.scanner import find_regions


class TestTags:
    def test_mismatched_end_tag(self) -> None:
        with pytest.raises(ParseError, match="mismatched end tag: expected </div>, found </span>") as info:
            parse_region("<div></span>")
        assert info.value.span.start.column == 6

    def test_missing_end_tag(self) -> None:
        with pytest.raises(ParseError, match="missing end tag </div> before end of input") as info:
            parse_region("<div>abc")
        # Points at the open tag
        assert info.value.span.start.offset == 0
        assert info.value.span.end.offset == 5

    def test_unterminated_start_tag(self) -> None:
        with pytest.raises(ParseError, match="unterminated start tag <div>"):
            parse_region("<div class='a'")

    def test_unterminated_end_tag(self) -> None:
        with pytest.raises(ParseError, match="unterminated end tag </div"):
            parse_region("<div></div")

    def test_end_tag_not_closed(self) -> None:
        with pytest.raises(ParseError, match="expected '>' to close end tag </div"):
            parse_region("<div></div x>")

    def test_bad_self_close(self) -> None:
        with pytest.raises(ParseError, match="expected '/>' to close start tag <br>"):
            parse_region("<br / >")

    def test_unexpected_character(self) -> None:
        with pytest.raises(ParseError, match="unexpected character '\\$' in start tag <div>"):
            parse_region("<div $>")

    def test_not_a_tag(self) -> None:
        with pytest.raises(ParseError, match="expected a start tag"):
            parse_region("< div>")


class TestAttributes:
    def test_unterminated_value(self) -> None:
        with pytest.raises(ParseError, match="unterminated value for attribute 'href'"):
            parse_region('<a href="x>')

    def test_unquoted_value(self) -> None:
        with pytest.raises(ParseError, match="after 'href=' in <a>"):
            parse_region("<a href=x>")

    def test_empty_expression(self) -> None:
        with pytest.raises(ParseError, match="empty expression for attribute 'href'"):
            parse_region("<a href={ }/>")

    def test_empty_spread(self) -> None:
        with pytest.raises(ParseError, match="empty attribute expression in <div>"):
            parse_region("<div {}/>")


class TestExpressions:
    def test_unterminated_expression(self) -> None:
        with pytest.raises(ParseError, match="unterminated expression: expected '}'") as info:
            parse_region("<div>{unterminated")
        assert info.value.span.start.offset == 5

    def test_stray_close_brace(self) -> None:
        with pytest.raises(ParseError, match="unexpected '}' in text"):
            parse_region("<p>}</p>")

    def test_unterminated_string_in_expression(self) -> None:
        with pytest.raises(ParseError, match="unterminated string literal"):
            parse_region('<p>{"abc}</p>')


class TestReporting:
    def test_filename_and_position(self) -> None:
        source = "def f():\n    return <div></p>\n"
        with pytest.raises(ParseError) as info:
            find_regions(source, "page.psx")
        exc = info.value
        assert exc.filename == "page.psx"
        assert exc.span.start.line == 2
        assert exc.span.start.column == 17
        assert "--> page.psx:2:17" in exc.format()
        assert "    return <div></p>" in exc.format()
