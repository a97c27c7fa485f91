"""Tests for psx.toml loading and option precedence."""

from __future__ import annotations

import argparse
from pathlib import Path

import pytest

from psx.cli import CliOptions, build_parser, load_config, main, resolve_options


def options(root: Path, *argv: str) -> CliOptions:
    return resolve_options(build_parser().parse_args(list(argv)), root)


def write_config(root: Path, text: str) -> None:
    (root / "psx.toml").write_text(text, encoding="utf-8")


class TestLoadConfig:
    def test_absent(self, tmp_path: Path) -> None:
        assert load_config(None, tmp_path) == {}

    def test_discovered_in_root(self, tmp_path: Path) -> None:
        write_config(tmp_path, "[output]\nsuffix = '.gen.py'\n")
        assert load_config(None, tmp_path) == {"output": {"suffix": ".gen.py"}}

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "other.toml"
        path.write_text("[format]\nline_length = 100\n", encoding="utf-8")
        assert load_config(path, tmp_path) == {"format": {"line_length": 100}}

    def test_explicit_missing(self, tmp_path: Path) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="config file not found"):
            load_config(tmp_path / "nope.toml", tmp_path)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        write_config(tmp_path, "[output\n")
        with pytest.raises(argparse.ArgumentTypeError, match="invalid config"):
            load_config(None, tmp_path)


class TestPrecedence:
    def test_defaults(self, project: Path) -> None:
        opts = options(project)
        assert opts.root == project.resolve()
        assert opts.suffix == ".py"
        assert opts.line_length == 88
        assert opts.jobs >= 1
        assert opts.exclude == ()
        assert opts.interval == 0.5
        assert opts.dir is None

    def test_config_values(self, project: Path) -> None:
        write_config(
            project,
            "[output]\nsuffix = '.out.py'\n"
            "[format]\nline_length = 100\n"
            "[discover]\nexclude = ['build', 'dist']\n"
            "[compile]\njobs = 4\n",
        )
        opts = options(project)
        assert opts.suffix == ".out.py"
        assert opts.line_length == 100
        assert opts.exclude == ("build", "dist")
        assert opts.jobs == 4

    def test_cli_overrides_config(self, project: Path) -> None:
        write_config(project, "[output]\nsuffix = '.out.py'\n[compile]\njobs = 4\n")
        opts = options(project, "--suffix", ".cli.py", "-j", "2", "--line-length", "60")
        assert opts.suffix == ".cli.py"
        assert opts.jobs == 2
        assert opts.line_length == 60

    def test_config_flag(self, project: Path) -> None:
        (project / "alt.toml").write_text("[output]\nsuffix = '.alt.py'\n", encoding="utf-8")
        assert options(project, "--config", "alt.toml").suffix == ".alt.py"

    def test_root_flag(self, project: Path) -> None:
        other = project / "other"
        other.mkdir()
        write_config(other, "[format]\nline_length = 70\n")
        opts = options(project, "--root", "other")
        assert opts.root == other.resolve()
        assert opts.line_length == 70

    def test_root_detected_from_subdirectory(self, project: Path) -> None:
        write_config(project, "[format]\nline_length = 70\n")
        sub = project / "pages"
        sub.mkdir()
        assert options(sub).line_length == 70


class TestValidation:
    @pytest.mark.parametrize(
        "text",
        [
            "[format]\nline_length = 'wide'\n",
            "[format]\nline_length = true\n",
            "[output]\nsuffix = 3\n",
            "[discover]\nexclude = 'build'\n",
            "[discover]\nexclude = [1]\n",
            "output = 'x'\n",
        ],
    )
    def test_bad_config(self, project: Path, text: str) -> None:
        write_config(project, text)
        with pytest.raises(argparse.ArgumentTypeError):
            options(project)

    @pytest.mark.parametrize(
        "argv",
        [["--line-length", "0"], ["-j", "0"], ["--interval", "-1"], ["--suffix", ""]],
    )
    def test_bad_flags(self, project: Path, argv: list[str]) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            options(project, *argv)

    def test_main_exit_code(self, project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        write_config(project, "[format]\nline_length = 'wide'\n")
        assert main([]) == 2
        assert "config: format.line_length must be int" in capsys.readouterr().err
