"""Shared test fixtures for mermaid-sonar."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from mermaid_sonar.analysis.metrics import Metrics
from mermaid_sonar.diagram import Diagram, Edge, Node

if TYPE_CHECKING:
    from collections.abc import Callable


def build_diagram(
    edges: list[tuple[str, str]] | None = None,
    *,
    nodes: list[str] | dict[str, str] | None = None,
    type: str = "flowchart",  # noqa: A002
    direction: str | None = "TD",
    parse_errors: tuple[str, ...] = (),
    file_path: str = "docs/diagram.md",
    start_line: int = 3,
) -> Diagram:
    """Build a Diagram; nodes default to the edge endpoints in first-seen order."""
    edges = edges or []
    if nodes is None:
        seen: dict[str, str] = {}
        for src, dst in edges:
            seen.setdefault(src, src)
            seen.setdefault(dst, dst)
        labels = seen
    elif isinstance(nodes, dict):
        labels = nodes
    else:
        labels = {node_id: node_id for node_id in nodes}
    return Diagram(
        type=type,
        direction=direction,
        nodes=tuple(Node(id=node_id, label=label) for node_id, label in labels.items()),
        edges=tuple(Edge(source=src, target=dst) for src, dst in edges),
        source_text="",
        file_path=file_path,
        start_line=start_line,
        parse_errors=parse_errors,
    )


@pytest.fixture()
def make_diagram() -> Callable[..., Diagram]:
    """Factory fixture for ``Diagram`` values."""
    return build_diagram


@pytest.fixture()
def make_metrics() -> Callable[..., Metrics]:
    """Factory fixture for ``Metrics`` with neutral defaults."""

    def _make(**overrides: Any) -> Metrics:
        values: dict[str, Any] = {
            "node_count": 3,
            "edge_count": 2,
            "density": 0.33,
            "cyclomatic_complexity": 1,
            "components": (("A", "B", "C"),),
            "longest_chain": ("A", "B", "C"),
            "max_branch_width": 1,
            "estimated_width": 174,
            "estimated_height": 270,
            "long_labels": (),
            "reserved_word_hits": (),
        }
        values.update(overrides)
        return Metrics(**values)

    return _make
