"""Error types with formatted source context."""

from __future__ import annotations

from psx.tokens import START, Span


class PsxError(Exception):
    """Base class for compile errors, carrying a span and the source it points into."""

    kind = "error"

    def __init__(
        self,
        message: str,
        span: Span | None,
        source: str,
        filename: str = "input.psx",
    ) -> None:
        self.message = message
        self.span = span if span is not None else Span(START, START)
        self.source = source
        self.filename = filename
        super().__init__(self.format())

    def format(self, filename: str | None = None) -> str:
        if filename is None:
            filename = self.filename
        lines = self.source.splitlines(keepends=True)
        line_idx = self.span.start.line - 1
        col = self.span.start.column

        if 0 <= line_idx < len(lines):
            source_line = lines[line_idx].rstrip("\n").rstrip("\r")
        else:
            source_line = ""

        # Underline the full span when on one line, otherwise to end of line
        if self.span.end.line == self.span.start.line:
            underline_len = max(1, self.span.end.column - col)
        else:
            underline_len = max(1, len(source_line) - col + 1)

        pad = " " * (col - 1)
        carets = "^" * underline_len

        line_num = str(self.span.start.line)
        gutter_width = len(line_num) + 1

        blank_gutter = " " * gutter_width + "|"
        line_gutter = f"{line_num:>{gutter_width - 1}} |"

        return (
            f"{self.kind}: {self.message}\n"
            f"{' ' * gutter_width}--> {filename}:{self.span.start.line}:{col}\n"
            f"{blank_gutter}\n"
            f"{line_gutter} {source_line}\n"
            f"{blank_gutter} {pad}{carets}"
        )

    def with_source(self, source: str, filename: str) -> PsxError:
        """Return a copy of this error pointing into *source* of *filename*."""
        return type(self)(self.message, self.span, source, filename)


class ParseError(PsxError):
    """Raised on the first scanning or markup parsing error."""


class LowerError(PsxError):
    """Raised when a node cannot be lowered, usually an invalid Python expression."""

    def __init__(
        self,
        message: str,
        span: Span | None,
        source: str,
        filename: str = "input.psx",
        expression: str = "",
    ) -> None:
        self.expression = expression
        super().__init__(message, span, source, filename)

    def with_source(self, source: str, filename: str) -> LowerError:
        return LowerError(self.message, self.span, source, filename, self.expression)


class FormatError(PsxError):
    """Raised when the rewritten file is rejected by the formatter.

    The span and snippet refer to the generated text, not the input file.
    """
