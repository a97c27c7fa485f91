"""Command-line interface for psx."""

from __future__ import annotations

import argparse
import hashlib
import logging
import os
import sys
import time
import tomllib
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from itertools import repeat
from pathlib import Path
from typing import Any

from psx.compiler import DEFAULT_LINE_LENGTH
from psx.errors import PsxError
from psx.files import (
    DEFAULT_OUTPUT_SUFFIX,
    collect_dir,
    collect_paths,
    find_project_root,
    output_path,
    write_generated_file,
)

logger = logging.getLogger(__name__)

CONFIG_NAME = "psx.toml"
DEFAULT_INTERVAL = 0.5


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    paths: list[str]
    dir: Path | None
    root: Path
    suffix: str
    line_length: int
    jobs: int
    exclude: tuple[str, ...]
    watch: bool
    interval: float
    debug: bool
    verbose: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="psx",
        description="Compile .psx files (Python with tag markup) to Python",
    )
    p.add_argument(
        "paths",
        nargs="*",
        help="Files, directories, or DIR/... patterns (default: ./...)",
    )
    p.add_argument("--dir", metavar="DIR", help="Compile the .psx files directly in DIR")
    p.add_argument("--root", metavar="DIR", help="Project root (default: auto-detect)")
    p.add_argument(
        "--config",
        metavar="FILE",
        help=f"Config file (default: {CONFIG_NAME} in the project root)",
    )
    p.add_argument("--suffix", help="Output file suffix (default: .py)")
    p.add_argument("--line-length", type=int, default=None, metavar="N", help="Formatter line length")
    p.add_argument("-j", "--jobs", type=int, default=None, metavar="N", help="Parallel workers")
    p.add_argument("--watch", action="store_true", help="Watch for changes and recompile")
    p.add_argument(
        "--interval",
        type=float,
        default=None,
        metavar="SECS",
        help=f"Watch poll interval in seconds (default: {DEFAULT_INTERVAL})",
    )
    p.add_argument("--debug", action="store_true", help="Dump parsed markup trees to stderr")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return p


def load_config(config_path: Path | None, root: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict when there is none.

    An explicitly named file must exist.
    """
    if config_path is not None:
        if not config_path.is_file():
            raise argparse.ArgumentTypeError(f"config file not found: {config_path}")
        path = config_path
    else:
        path = root / CONFIG_NAME
        if not path.is_file():
            return {}

    try:
        with open(path, "rb") as f:
            config = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise argparse.ArgumentTypeError(f"invalid config {path}: {exc}") from None
    logger.debug("loaded config %s", path)
    return config


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    value = config.get(name, {})
    if not isinstance(value, dict):
        raise argparse.ArgumentTypeError(f"config: [{name}] must be a table")
    return value


def _config_value(config: dict[str, Any], section: str, key: str, kind: type) -> Any:
    value = _section(config, section).get(key)
    # bool is an int subclass; reject it where a number is expected
    if value is not None and (not isinstance(value, kind) or isinstance(value, bool)):
        raise argparse.ArgumentTypeError(
            f"config: {section}.{key} must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def resolve_options(args: argparse.Namespace, cwd: Path | None = None) -> CliOptions:
    """Merge defaults, config file, and CLI args into CliOptions.

    Precedence: defaults < config file < CLI flags.
    """
    cwd = cwd if cwd is not None else Path.cwd()

    if args.dir and args.paths:
        raise argparse.ArgumentTypeError("--dir cannot be combined with positional paths")

    root = (cwd / args.root).resolve() if args.root else find_project_root(cwd)
    config_path = cwd / args.config if args.config else None
    config = load_config(config_path, root)

    suffix = _config_value(config, "output", "suffix", str) or DEFAULT_OUTPUT_SUFFIX
    if args.suffix is not None:
        suffix = args.suffix
    if not suffix:
        raise argparse.ArgumentTypeError("output suffix must not be empty")

    line_length = _config_value(config, "format", "line_length", int) or DEFAULT_LINE_LENGTH
    if args.line_length is not None:
        line_length = args.line_length
    if line_length <= 0:
        raise argparse.ArgumentTypeError(f"line length must be positive, got {line_length}")

    jobs = _config_value(config, "compile", "jobs", int) or os.cpu_count() or 1
    if args.jobs is not None:
        jobs = args.jobs
    if jobs <= 0:
        raise argparse.ArgumentTypeError(f"jobs must be positive, got {jobs}")

    exclude = _config_value(config, "discover", "exclude", list) or []
    if not all(isinstance(name, str) for name in exclude):
        raise argparse.ArgumentTypeError("config: discover.exclude must be a list of strings")

    interval = args.interval if args.interval is not None else DEFAULT_INTERVAL
    if interval < 0:
        raise argparse.ArgumentTypeError(f"interval must not be negative, got {interval}")

    return CliOptions(
        paths=list(args.paths),
        dir=(cwd / args.dir).resolve() if args.dir else None,
        root=root,
        suffix=suffix,
        line_length=line_length,
        jobs=jobs,
        exclude=tuple(exclude),
        watch=args.watch,
        interval=interval,
        debug=args.debug,
        verbose=args.verbose,
    )


def discover(options: CliOptions, cwd: Path) -> list[Path]:
    """Select the source files named by the options."""
    if options.dir is not None:
        paths = collect_dir(options.dir)
    else:
        paths = collect_paths(cwd, options.paths or ["./..."], options.exclude)
    logger.debug("discovered %d file(s)", len(paths))
    return paths


def generate_file(path: Path, suffix: str, line_length: int, debug: bool = False) -> str | None:
    """Compile *path* and write its output file.

    Returns the formatted error on failure, in which case nothing is written.
    Errors are returned rather than raised so results cross process boundaries.
    """
    from psx.compiler import compile_file

    try:
        data = path.read_bytes()
        if debug:
            _dump(path, data)
        output = compile_file(path, data, line_length=line_length)
        write_generated_file(output_path(path, suffix), output)
    except PsxError as exc:
        return exc.format()
    except OSError as exc:
        return f"error: {path}: {exc.strerror or exc}"
    return None


def _dump(path: Path, data: bytes) -> None:
    from psx.debug import dump_regions
    from psx.scanner import find_regions

    try:
        regions = find_regions(data.decode("utf-8"), str(path))
    except (UnicodeDecodeError, PsxError):
        # Reported by the compile that follows
        return
    sys.stderr.write(f"{path}\n")
    dump_regions(regions, file=sys.stderr)


def compile_paths(paths: list[Path], options: CliOptions) -> list[str]:
    """Compile every path, returning error messages in path order."""
    args = (repeat(options.suffix), repeat(options.line_length), repeat(options.debug))
    workers = min(options.jobs, len(paths))
    if workers <= 1:
        results = list(map(generate_file, paths, *args))
    else:
        with ProcessPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(generate_file, paths, *args))
    return [err for err in results if err is not None]


def run_once(options: CliOptions, cwd: Path) -> int:
    """Discover, compile, and report. Returns the exit code."""
    try:
        paths = discover(options, cwd)
    except (FileNotFoundError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    errors = compile_paths(paths, options)
    for err in errors:
        print(err, file=sys.stderr)
    if errors:
        print(f"{len(errors)} of {len(paths)} file(s) failed", file=sys.stderr)
        return 1
    return 0


def snapshot(paths: list[Path]) -> dict[Path, str]:
    """SHA-256 content hash per readable path."""
    hashes: dict[Path, str] = {}
    for path in paths:
        try:
            hashes[path] = hashlib.sha256(path.read_bytes()).hexdigest()
        except OSError:
            continue
    return hashes


def watch_loop(options: CliOptions, cwd: Path, *, cycles: int | None = None) -> None:
    """Poll selected files for content changes and recompile the changed ones.

    *cycles* bounds the number of polls; None polls until interrupted.
    """
    last: dict[Path, str] = {}
    print(f"Watching {options.dir or cwd} for changes...", file=sys.stderr)
    try:
        while cycles is None or cycles > 0:
            if cycles is not None:
                cycles -= 1
            try:
                current = snapshot(discover(options, cwd))
            except (FileNotFoundError, ValueError) as exc:
                print(f"error: {exc}", file=sys.stderr)
                time.sleep(options.interval)
                continue
            changed = sorted(p for p, digest in current.items() if last.get(p) != digest)
            last = current
            if changed:
                for err in compile_paths(changed, options):
                    print(err, file=sys.stderr)
                print(f"Compiled {len(changed)} file(s)", file=sys.stderr)
            time.sleep(options.interval)
    except KeyboardInterrupt:
        pass


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    cwd = Path.cwd()
    try:
        options = resolve_options(args, cwd)
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if options.watch:
        watch_loop(options, cwd)
        return 0

    return run_once(options, cwd)
