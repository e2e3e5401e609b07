"""Metrics analyzer: derive structural and size metrics from a parsed diagram.

``analyze`` is total: empty or malformed diagrams produce a ``Metrics`` value
with identity counts (zero density, zero complexity, zero-length chain)
rather than an error.  Nothing is cached between calls.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from mermaid_sonar.analysis.graph import (
    build_adjacency,
    find_components,
    longest_chain,
    max_branch_width,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from mermaid_sonar.diagram import Diagram, Node

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

NODE_SPACING = 50  # px between neighbouring nodes (Mermaid default)
CHAR_WIDTH = 8  # px per label character
NODE_HEIGHT = 40  # px, default box height
VERTICAL_SPACING = 50  # px between layers

LONG_LABEL_THRESHOLD = 40

RESERVED_WORDS: frozenset[str] = frozenset(
    {"end", "click", "call", "style", "class", "classdef", "direction"}
)
TERMINATOR_NAMES: frozenset[str] = frozenset({"start", "end", "begin", "complete", "finish", "done"})

_CONFLICTING_ID_RE = re.compile(r"^[ox]\d+$", re.IGNORECASE)
_LINE_BREAK_RE = re.compile(r"\n|<br\s*/?>", re.IGNORECASE)

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LongLabel:
    """A node whose label exceeds the long-label threshold."""

    node_id: str
    label: str
    length: int


@dataclass(frozen=True)
class ReservedWordHit:
    """A node id that collides with Mermaid syntax."""

    node_id: str
    kind: str  # "reserved" | "pattern"


@dataclass(frozen=True)
class Metrics:
    """Derived, immutable metrics for one diagram."""

    node_count: int
    edge_count: int
    density: float
    cyclomatic_complexity: int
    components: tuple[tuple[str, ...], ...]
    longest_chain: tuple[str, ...]
    max_branch_width: int
    estimated_width: int
    estimated_height: int
    long_labels: tuple[LongLabel, ...]
    reserved_word_hits: tuple[ReservedWordHit, ...]

    @property
    def component_count(self) -> int:
        return len(self.components)

    @property
    def longest_chain_length(self) -> int:
        return len(self.longest_chain)

    @property
    def average_degree(self) -> float:
        """Mean number of edge endpoints per node, ``2E / N``."""
        return calculate_average_degree(self.node_count, self.edge_count)


# ---------------------------------------------------------------------------
# Formulas
# ---------------------------------------------------------------------------


def calculate_density(node_count: int, edge_count: int) -> float:
    """Edges divided by the possible edges of a simple directed graph.

    Returns ``0.0`` for fewer than two nodes.
    """
    if node_count <= 1:
        return 0.0
    return edge_count / (node_count * (node_count - 1))


def calculate_average_degree(node_count: int, edge_count: int) -> float:
    if node_count == 0:
        return 0.0
    return 2 * edge_count / node_count


def calculate_cyclomatic_complexity(node_count: int, edge_count: int, components: int) -> int:
    """``E - N + 2P`` clamped to zero; an empty diagram scores zero."""
    if node_count == 0:
        return 0
    return max(0, edge_count - node_count + 2 * components)


def label_length(label: str) -> int:
    """Rendered length of a label: the longest line of a multi-line label."""
    return max(len(line.strip()) for line in _LINE_BREAK_RE.split(label))


def estimate_width(
    nodes: Iterable[Node],
    *,
    node_spacing: float = NODE_SPACING,
    char_width: float = CHAR_WIDTH,
) -> int:
    """Rough rendered width: node spacing plus label text, in pixels."""
    count = 0
    chars = 0
    for node in nodes:
        count += 1
        chars += label_length(node.label)
    return round(count * node_spacing + chars * char_width)


def estimate_height(
    node_count: int,
    *,
    node_height: float = NODE_HEIGHT,
    vertical_spacing: float = VERTICAL_SPACING,
) -> int:
    """Rough rendered height: one box plus one gap per node, in pixels."""
    return round(node_count * (node_height + vertical_spacing))


# ---------------------------------------------------------------------------
# Label and id checks
# ---------------------------------------------------------------------------


def find_long_labels(
    nodes: Iterable[Node], threshold: int = LONG_LABEL_THRESHOLD
) -> tuple[LongLabel, ...]:
    """Labels longer than *threshold* characters, in node order."""
    hits: list[LongLabel] = []
    for node in nodes:
        length = len(node.label.strip())
        if length > threshold:
            hits.append(LongLabel(node_id=node.id, label=node.label, length=length))
    return tuple(hits)


def _is_terminator(node_id: str, diagram: Diagram) -> bool:
    """A conventional Start/End node of a flowchart with no outgoing edges."""
    if diagram.type not in ("flowchart", "graph"):
        return False
    if node_id.lower() not in TERMINATOR_NAMES:
        return False
    return not any(
        edge.source == node_id or (edge.bidirectional and edge.target == node_id)
        for edge in diagram.edges
    )


def find_reserved_words(diagram: Diagram) -> tuple[ReservedWordHit, ...]:
    """Node ids that are Mermaid keywords or look like ``o1``/``x1`` arrow heads."""
    hits: list[ReservedWordHit] = []
    for node in diagram.nodes:
        if node.id.lower() in RESERVED_WORDS:
            if not _is_terminator(node.id, diagram):
                hits.append(ReservedWordHit(node_id=node.id, kind="reserved"))
        elif _CONFLICTING_ID_RE.match(node.id):
            hits.append(ReservedWordHit(node_id=node.id, kind="pattern"))
    return tuple(hits)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def analyze(diagram: Diagram) -> Metrics:
    """Compute ``Metrics`` for *diagram*.

    The longest chain follows the declared direction: ``RL`` and ``BT``
    diagrams are walked along reversed edges.
    """
    node_ids = diagram.node_ids
    node_count = len(node_ids)
    edge_count = len(diagram.edges)

    components = find_components(node_ids, diagram.edges)
    adjacency = build_adjacency(
        node_ids, diagram.edges, reverse=diagram.direction in ("RL", "BT")
    )

    return Metrics(
        node_count=node_count,
        edge_count=edge_count,
        density=calculate_density(node_count, edge_count),
        cyclomatic_complexity=calculate_cyclomatic_complexity(
            node_count, edge_count, len(components)
        ),
        components=tuple(components),
        longest_chain=longest_chain(node_ids, adjacency),
        max_branch_width=max_branch_width(adjacency),
        estimated_width=estimate_width(diagram.nodes),
        estimated_height=estimate_height(node_count),
        long_labels=find_long_labels(diagram.nodes),
        reserved_word_hits=find_reserved_words(diagram),
    )
