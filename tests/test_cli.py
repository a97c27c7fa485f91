"""Tests for the CLI module: exit codes, error aggregation, outputs, watch mode."""

from __future__ import annotations

from pathlib import Path

import pytest

from psx.cli import build_parser, generate_file, main, resolve_options, snapshot, watch_loop

GOOD = "x = <p>hi</p>\n"
BAD = "x = <div>{unterminated\n"


def write(root: Path, name: str, text: str) -> Path:
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


class TestBuildParser:
    def test_defaults(self) -> None:
        args = build_parser().parse_args([])
        assert args.paths == []
        assert args.dir is None
        assert args.jobs is None
        assert not args.watch
        assert not args.debug

    def test_flags(self) -> None:
        args = build_parser().parse_args(
            ["a.psx", "b/...", "-j", "3", "--suffix", ".out.py", "--line-length", "100", "-v"]
        )
        assert args.paths == ["a.psx", "b/..."]
        assert args.jobs == 3
        assert args.suffix == ".out.py"
        assert args.line_length == 100
        assert args.verbose


# ---------------------------------------------------------------------------
# Single compile runs
# ---------------------------------------------------------------------------


class TestMain:
    def test_success(self, project: Path) -> None:
        write(project, "page.psx", GOOD)
        assert main(["-j", "1"]) == 0
        assert (project / "page.psx.py").read_text(encoding="utf-8") == 'x = P(Text("hi"))\n'

    def test_recurses_by_default(self, project: Path) -> None:
        write(project, "a/b/page.psx", GOOD)
        assert main(["-j", "1"]) == 0
        assert (project / "a" / "b" / "page.psx.py").is_file()

    def test_failure_aggregated(self, project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        write(project, "bad.psx", BAD)
        write(project, "good.psx", GOOD)
        write(project, "worse.psx", "y = <a></b>\n")
        assert main(["-j", "1"]) == 1
        assert not (project / "bad.psx.py").exists()
        assert not (project / "worse.psx.py").exists()
        # Every file is attempted
        assert (project / "good.psx.py").is_file()
        err = capsys.readouterr().err
        assert "unterminated expression" in err
        assert "mismatched end tag" in err
        assert err.index("bad.psx") < err.index("worse.psx")
        assert "2 of 3 file(s) failed" in err

    def test_output_not_overwritten_on_failure(self, project: Path) -> None:
        write(project, "page.psx", BAD)
        write(project, "page.psx.py", "previous = True\n")
        assert main(["-j", "1"]) == 1
        assert (project / "page.psx.py").read_text(encoding="utf-8") == "previous = True\n"

    def test_suffix(self, project: Path) -> None:
        write(project, "page.psx", GOOD)
        assert main(["-j", "1", "--suffix", ".gen.py"]) == 0
        assert (project / "page.psx.gen.py").is_file()
        assert not (project / "page.psx.py").exists()

    def test_dir(self, project: Path) -> None:
        write(project, "site/page.psx", GOOD)
        write(project, "site/nested/other.psx", GOOD)
        assert main(["-j", "1", "--dir", "site"]) == 0
        assert (project / "site" / "page.psx.py").is_file()
        assert not (project / "site" / "nested" / "other.psx.py").exists()

    def test_dir_with_paths_is_usage_error(
        self, project: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["--dir", "site", "page.psx"]) == 2
        assert "--dir cannot be combined" in capsys.readouterr().err

    def test_missing_path(self, project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["nope.psx"]) == 2
        assert "no such file or directory" in capsys.readouterr().err

    def test_wrong_extension(self, project: Path) -> None:
        write(project, "page.py", "x = 1\n")
        assert main(["page.py"]) == 2

    def test_parallel(self, project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        write(project, "a.psx", GOOD)
        write(project, "b.psx", BAD)
        write(project, "c.psx", GOOD)
        assert main(["-j", "2"]) == 1
        assert (project / "a.psx.py").is_file()
        assert (project / "c.psx.py").is_file()
        assert not (project / "b.psx.py").exists()
        assert "1 of 3 file(s) failed" in capsys.readouterr().err

    def test_debug_dump(self, project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        write(project, "page.psx", GOOD)
        assert main(["-j", "1", "--debug"]) == 0
        err = capsys.readouterr().err
        assert "Element <p>" in err
        assert "Text 'hi'" in err

    def test_nothing_to_do(self, project: Path) -> None:
        assert main(["-j", "1"]) == 0


class TestGenerateFile:
    def test_returns_none_and_writes(self, tmp_path: Path) -> None:
        src = write(tmp_path, "page.psx", GOOD)
        assert generate_file(src, ".py", 88) is None
        assert (tmp_path / "page.psx.py").is_file()

    def test_returns_formatted_error(self, tmp_path: Path) -> None:
        src = write(tmp_path, "page.psx", BAD)
        err = generate_file(src, ".py", 88)
        assert err is not None
        assert err.startswith("error: unterminated expression")
        assert f"--> {src}:1:10" in err

    def test_unreadable(self, tmp_path: Path) -> None:
        err = generate_file(tmp_path / "gone.psx", ".py", 88)
        assert err is not None
        assert "gone.psx" in err


# ---------------------------------------------------------------------------
# Watch mode
# ---------------------------------------------------------------------------


class TestWatch:
    def options(self, root: Path, *argv: str):
        return resolve_options(build_parser().parse_args(["-j", "1", "--interval", "0", *argv]), root)

    def test_compiles_on_first_poll(self, project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        write(project, "page.psx", GOOD)
        watch_loop(self.options(project), project, cycles=1)
        assert (project / "page.psx.py").is_file()
        assert "Compiled 1 file(s)" in capsys.readouterr().err

    def test_unchanged_files_not_recompiled(
        self, project: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        write(project, "page.psx", GOOD)
        watch_loop(self.options(project), project, cycles=3)
        assert capsys.readouterr().err.count("Compiled") == 1

    def test_errors_reported_and_loop_continues(
        self, project: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        write(project, "page.psx", BAD)
        watch_loop(self.options(project), project, cycles=2)
        err = capsys.readouterr().err
        assert "unterminated expression" in err

    def test_snapshot_hashes_content(self, tmp_path: Path) -> None:
        a = write(tmp_path, "a.psx", GOOD)
        first = snapshot([a])
        a.write_text(GOOD + "y = 1\n", encoding="utf-8")
        assert snapshot([a]) != first
        assert snapshot([tmp_path / "missing.psx"]) == {}
