"""Tests for file discovery, project root detection, and output writing."""

from __future__ import annotations

from pathlib import Path

import pytest

from psx.files import (
    collect_dir,
    collect_paths,
    find_project_root,
    output_path,
    write_generated_file,
)


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    files = [
        "a.psx",
        "notes.txt",
        "sub/b.psx",
        "sub/deep/c.psx",
        "vendor/v.psx",
        "node_modules/n.psx",
        "__pycache__/p.psx",
        ".hidden/h.psx",
        "build/x.psx",
    ]
    for name in files:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("x = 1\n", encoding="utf-8")
    return tmp_path.resolve()


def names(paths: list[Path], root: Path) -> list[str]:
    return [p.relative_to(root).as_posix() for p in paths]


class TestCollectPaths:
    def test_recursive(self, tree: Path) -> None:
        found = collect_paths(tree, ["./..."])
        assert names(found, tree) == ["a.psx", "build/x.psx", "sub/b.psx", "sub/deep/c.psx"]

    def test_exclude(self, tree: Path) -> None:
        found = collect_paths(tree, ["./..."], exclude=["build", "deep"])
        assert names(found, tree) == ["a.psx", "sub/b.psx"]

    def test_subdirectory_recursive(self, tree: Path) -> None:
        assert names(collect_paths(tree, ["sub/..."]), tree) == ["sub/b.psx", "sub/deep/c.psx"]

    def test_directory_not_recursive(self, tree: Path) -> None:
        assert names(collect_paths(tree, ["sub"]), tree) == ["sub/b.psx"]

    def test_single_file(self, tree: Path) -> None:
        assert names(collect_paths(tree, ["sub/b.psx"]), tree) == ["sub/b.psx"]

    def test_absolute_and_deduplicated(self, tree: Path) -> None:
        found = collect_paths(tree, ["a.psx", str(tree / "a.psx"), "./..."])
        assert all(p.is_absolute() for p in found)
        assert names(found, tree).count("a.psx") == 1

    def test_named_vendor_file_allowed(self, tree: Path) -> None:
        assert names(collect_paths(tree, ["vendor/v.psx"]), tree) == ["vendor/v.psx"]

    def test_wrong_extension(self, tree: Path) -> None:
        with pytest.raises(ValueError, match="not a .psx file"):
            collect_paths(tree, ["notes.txt"])

    def test_missing_file(self, tree: Path) -> None:
        with pytest.raises(FileNotFoundError):
            collect_paths(tree, ["missing.psx"])

    def test_missing_directory(self, tree: Path) -> None:
        with pytest.raises(FileNotFoundError):
            collect_paths(tree, ["missing/..."])

    def test_empty_patterns_ignored(self, tree: Path) -> None:
        assert collect_paths(tree, ["", "  "]) == []


class TestCollectDir:
    def test_lists_one_directory(self, tree: Path) -> None:
        assert names(collect_dir(tree / "sub"), tree) == ["sub/b.psx"]

    def test_missing(self, tree: Path) -> None:
        with pytest.raises(FileNotFoundError):
            collect_dir(tree / "nope")


class TestProjectRoot:
    def test_pyproject_marker(self, tmp_path: Path) -> None:
        (tmp_path / "proj" / "src" / "pkg").mkdir(parents=True)
        (tmp_path / "proj" / "pyproject.toml").write_text("", encoding="utf-8")
        start = tmp_path / "proj" / "src" / "pkg"
        assert find_project_root(start) == (tmp_path / "proj").resolve()

    def test_nearest_marker_wins(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("", encoding="utf-8")
        (tmp_path / "site").mkdir()
        (tmp_path / "site" / "psx.toml").write_text("", encoding="utf-8")
        assert find_project_root(tmp_path / "site") == (tmp_path / "site").resolve()

    def test_marker_must_be_a_file(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("", encoding="utf-8")
        (tmp_path / "a" / "psx.toml").mkdir(parents=True)
        assert find_project_root(tmp_path / "a") == tmp_path.resolve()


class TestOutput:
    def test_output_path(self) -> None:
        assert output_path(Path("/x/page.psx")) == Path("/x/page.psx.py")
        assert output_path(Path("/x/page.psx"), ".gen.py") == Path("/x/page.psx.gen.py")

    def test_write_overwrites(self, tmp_path: Path) -> None:
        target = tmp_path / "page.psx.py"
        target.write_bytes(b"old contents\n")
        write_generated_file(target, b"new\n")
        assert target.read_bytes() == b"new\n"
