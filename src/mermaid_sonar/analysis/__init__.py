"""Analysis domain: graph algorithms and the diagram metrics analyzer."""

from mermaid_sonar.analysis.graph import (
    build_adjacency,
    find_components,
    longest_chain,
    max_branch_width,
)
from mermaid_sonar.analysis.metrics import (
    LongLabel,
    Metrics,
    ReservedWordHit,
    analyze,
    estimate_height,
    estimate_width,
)

__all__ = [
    "LongLabel",
    "Metrics",
    "ReservedWordHit",
    "analyze",
    "build_adjacency",
    "estimate_height",
    "estimate_width",
    "find_components",
    "longest_chain",
    "max_branch_width",
]
