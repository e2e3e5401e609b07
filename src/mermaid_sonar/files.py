"""Resolve CLI path arguments (files, directories, globs) into files to lint."""

from __future__ import annotations

import glob
import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".md", ".mmd", ".mermaid")


def _matches(path: Path, extensions: Sequence[str]) -> bool:
    return path.name.lower().endswith(tuple(ext.lower() for ext in extensions))


def _scan_directory(directory: Path, *, recursive: bool, extensions: Sequence[str]) -> list[Path]:
    candidates: Iterable[Path] = directory.rglob("*") if recursive else directory.iterdir()
    found: list[Path] = []
    try:
        for entry in candidates:
            if entry.is_file() and _matches(entry, extensions):
                found.append(entry)
    except OSError as exc:
        logger.warning("Cannot scan %s: %s", directory, exc)
    return found


def find_files(
    patterns: Sequence[str],
    *,
    recursive: bool = False,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> list[Path]:
    """Expand *patterns* into a sorted, de-duplicated list of absolute paths.

    Each pattern may be a file, a directory (top level only unless
    *recursive*), or a glob such as ``docs/**/*.md``.  Only files whose
    name ends with one of *extensions* are kept.
    """
    found: set[Path] = set()
    for pattern in patterns:
        path = Path(pattern)
        if path.is_dir():
            found.update(
                p.resolve()
                for p in _scan_directory(path, recursive=recursive, extensions=extensions)
            )
            continue
        if path.is_file():
            if _matches(path, extensions):
                found.add(path.resolve())
            continue
        matches = [Path(m) for m in glob.glob(pattern, recursive=True)]
        if not matches:
            logger.debug("Pattern matched nothing: %s", pattern)
        found.update(m.resolve() for m in matches if m.is_file() and _matches(m, extensions))
    return sorted(found)
