"""Minimal LSP server for psx files, diagnostics only."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from psx import __version__
from psx.compiler import compile_source
from psx.errors import FormatError, PsxError

server = LanguageServer("psx-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full)


def error_diagnostic(exc: PsxError) -> Diagnostic:
    """Convert a compile error to an LSP diagnostic (0-based positions)."""
    span = exc.span
    start = Position(line=span.start.line - 1, character=span.start.column - 1)
    end = Position(line=span.end.line - 1, character=span.end.column - 1)
    if end == start:
        end = Position(line=start.line, character=start.character + 1)
    message = exc.message
    if isinstance(exc, FormatError):
        # Position refers to the generated text; point at the file start instead
        start = Position(line=0, character=0)
        end = Position(line=0, character=1)
        message = f"{message} (line {span.start.line} of the generated code)"
    return Diagnostic(
        range=Range(start=start, end=end),
        message=message,
        severity=DiagnosticSeverity.Error,
        source="psx",
    )


def _validate(ls: LanguageServer, uri: str) -> None:
    """Compile the document and publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    diagnostics: list[Diagnostic] = []

    try:
        compile_source(doc.source, filename)
    except PsxError as exc:
        diagnostics.append(error_diagnostic(exc))

    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
