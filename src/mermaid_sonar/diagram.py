"""Structural model of a single Mermaid diagram."""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DIAGRAM_TYPES: frozenset[str] = frozenset({"flowchart", "graph", "state", "class", "unknown"})
DIRECTIONS: frozenset[str] = frozenset({"LR", "RL", "TD", "TB", "BT"})
HORIZONTAL_DIRECTIONS: frozenset[str] = frozenset({"LR", "RL"})

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Node:
    """A diagram node: unique id plus its display label."""

    id: str
    label: str


@dataclass(frozen=True)
class Edge:
    """A directed connection between two node ids.

    A bidirectional link (``A <--> B``) is one edge that can be followed
    both ways.
    """

    source: str
    target: str
    label: str | None = None
    bidirectional: bool = False


@dataclass(frozen=True)
class Diagram:
    """One parsed diagram.

    Edges reference nodes by id only.  An edge endpoint does not have to be
    declared in ``nodes``; consumers must tolerate such dangling references.
    """

    type: str  # "flowchart" | "graph" | "state" | "class" | "unknown"
    direction: str | None  # "LR" | "RL" | "TD" | "TB" | "BT" | None
    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]
    source_text: str
    file_path: str
    start_line: int = 1
    parse_errors: tuple[str, ...] = ()

    @property
    def node_ids(self) -> tuple[str, ...]:
        return tuple(node.id for node in self.nodes)

    @property
    def is_horizontal(self) -> bool:
        """True for left-right and right-left layouts."""
        return self.direction in HORIZONTAL_DIRECTIONS
