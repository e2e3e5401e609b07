"""Find Mermaid code fences in Markdown and standalone ``.mmd`` files."""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import TYPE_CHECKING

from mermaid_sonar.extractors.mermaid import parse_diagram

if TYPE_CHECKING:
    from pathlib import Path

    from mermaid_sonar.diagram import Diagram

logger = logging.getLogger(__name__)

MERMAID_SUFFIXES: frozenset[str] = frozenset({".mmd", ".mermaid"})

_FENCE_OPEN_RE = re.compile(r"^(?P<fence>`{3,}|~{3,})\s*mermaid\s*$", re.IGNORECASE)


def extract_diagrams(text: str, file_path: str) -> list[Diagram]:
    """Parse every ```` ```mermaid ```` / ``~~~mermaid`` block in *text*.

    A diagram's ``start_line`` is the 1-based line right after its opening
    fence.  A block left open at end of file is still parsed and gets an
    extra parse error.
    """
    diagrams: list[Diagram] = []
    lines = text.splitlines()
    fence: str | None = None
    start_line = 0
    block: list[str] = []

    for idx, line in enumerate(lines):
        stripped = line.strip()
        if fence is None:
            match = _FENCE_OPEN_RE.match(stripped)
            if match:
                fence = match.group("fence")
                start_line = idx + 2
                block = []
            continue
        if stripped.startswith(fence[0] * len(fence)) and not stripped.strip(fence[0]):
            diagrams.append(parse_diagram("\n".join(block), file_path, start_line))
            fence = None
            continue
        block.append(line)

    if fence is not None:
        diagram = parse_diagram("\n".join(block), file_path, start_line)
        diagrams.append(
            dataclasses.replace(
                diagram,
                parse_errors=(
                    *diagram.parse_errors,
                    f"line {start_line - 1}: code fence '{fence}mermaid' is never closed",
                ),
            )
        )

    logger.debug("Found %d diagram(s) in %s", len(diagrams), file_path)
    return diagrams


def extract_diagrams_from_file(path: Path) -> list[Diagram]:
    """Read *path* and extract its diagrams.

    ``.mmd``/``.mermaid`` files hold one diagram starting at line 1; other
    files are scanned as Markdown.  I/O errors propagate.
    """
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in MERMAID_SUFFIXES:
        return [parse_diagram(text, str(path), 1)]
    return extract_diagrams(text, str(path))
