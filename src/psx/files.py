"""File discovery, project root detection, and output writing."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".psx"
DEFAULT_OUTPUT_SUFFIX = ".py"

# Directory names never descended into while recursing
SKIP_DIRS: frozenset[str] = frozenset({"vendor", "node_modules", "__pycache__"})

ROOT_MARKERS: tuple[str, ...] = ("pyproject.toml", "psx.toml")


def find_project_root(start: Path) -> Path:
    """Return the nearest ancestor of *start* holding a root marker, else *start*."""
    start = start.resolve()
    for d in (start, *start.parents):
        if any((d / marker).is_file() for marker in ROOT_MARKERS):
            return d
    logger.debug("no %s above %s; using it as root", " or ".join(ROOT_MARKERS), start)
    return start


def is_source_file(path: Path) -> bool:
    return path.name.endswith(SOURCE_SUFFIX)


def collect_paths(
    cwd: Path,
    patterns: Iterable[str],
    exclude: Iterable[str] = (),
) -> list[Path]:
    """Expand path patterns into a sorted, de-duplicated list of source files.

    Patterns:
      - ``./...`` or ``dir/...`` recurse from that directory
      - ``dir`` only that directory (non-recursive)
      - ``file.psx`` only that file

    Raises FileNotFoundError for missing paths and ValueError for a named
    file that is not a source file.
    """
    skip = SKIP_DIRS | frozenset(exclude)
    seen: set[Path] = set()

    for raw in patterns:
        pat = raw.strip()
        if not pat:
            continue

        if pat == "..." or pat.endswith("/..."):
            base = pat[: -len("...")].rstrip("/") or "."
            seen.update(_walk(_absolute(cwd, base), skip))
            continue

        target = _absolute(cwd, pat)
        if target.is_dir():
            seen.update(collect_dir(target))
            continue
        if not target.exists():
            raise FileNotFoundError(f"no such file or directory: {target}")
        if not is_source_file(target):
            raise ValueError(f"not a {SOURCE_SUFFIX} file: {target}")
        seen.add(target)

    return sorted(seen)


def collect_dir(directory: Path) -> list[Path]:
    """Source files directly inside *directory*, sorted."""
    if not directory.is_dir():
        raise FileNotFoundError(f"no such directory: {directory}")
    return sorted(p.resolve() for p in directory.iterdir() if p.is_file() and is_source_file(p))


def output_path(path: Path, suffix: str = DEFAULT_OUTPUT_SUFFIX) -> Path:
    """The generated file for *path*: the input path plus *suffix*."""
    return path.with_name(path.name + suffix)


def write_generated_file(path: Path, data: bytes) -> None:
    """Write generated output, always overwriting."""
    path.write_bytes(data)
    logger.debug("wrote %s", path)


def _absolute(cwd: Path, pat: str) -> Path:
    p = Path(pat)
    if not p.is_absolute():
        p = cwd / p
    return p.resolve()


def _walk(root: Path, skip: frozenset[str]) -> list[Path]:
    if not root.is_dir():
        raise FileNotFoundError(f"no such directory: {root}")
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        kept = []
        for name in dirnames:
            if name in skip or name.startswith("."):
                logger.debug("skipping %s", Path(dirpath) / name)
            else:
                kept.append(name)
        dirnames[:] = kept
        for name in filenames:
            if name.endswith(SOURCE_SUFFIX):
                found.append(Path(dirpath, name).resolve())
    return found
