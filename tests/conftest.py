"""Shared test fixtures and helpers."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType

import pytest

from psx.ast import Element
from psx.compiler import compile_source
from psx.context import TypeContext, TypeTag
from psx.lower import lower_source
from psx.parser import parse_region


@pytest.fixture
def parse_markup():
    """Return a helper that parses one markup region starting at offset 0."""

    def _parse(source: str, filename: str = "test.psx") -> Element:
        return parse_region(source, 0, filename).element

    return _parse


@pytest.fixture
def lower():
    """Return a helper that parses markup and lowers it under the given types."""

    def _lower(source: str, types: dict[str, TypeTag] | None = None) -> str:
        element = parse_region(source, 0, "test.psx").element
        ctx = TypeContext(MappingProxyType(dict(types or {})))
        return lower_source([element], ctx)

    return _lower


@pytest.fixture
def run_psx():
    """Return a helper that compiles .psx source, executes it, and returns its namespace."""

    def _run(source: str) -> dict[str, object]:
        code = compile_source(source, "test.psx")
        namespace: dict[str, object] = {"__name__": "generated"}
        exec(compile(code, "test.psx.py", "exec"), namespace)
        return namespace

    return _run


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An empty project root (has pyproject.toml) that is also the working directory."""
    (tmp_path / "pyproject.toml").write_text("[project]\nname = 'site'\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path
