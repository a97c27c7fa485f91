"""psx: compiles Python source with embedded tag markup into builder calls."""

from __future__ import annotations

from os import PathLike

__version__ = "0.1.0"


def compile_source(source: str, filename: str = "input.psx", *, line_length: int = 88) -> str:
    """Rewrite every markup region in *source* and return formatted Python."""
    from psx.compiler import compile_source as _compile_source

    return _compile_source(source, filename, line_length=line_length)


def compile_file(path: str | PathLike[str], data: bytes, *, line_length: int = 88) -> bytes:
    """Compile one file's UTF-8 bytes to generated Python bytes."""
    from psx.compiler import compile_file as _compile_file

    return _compile_file(path, data, line_length=line_length)
