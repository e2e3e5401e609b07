"""Cognitive-load rules: edge and node limits, cyclomatic complexity, components.

Node and edge limits follow Huang et al. (2020): about 50 nodes is where
comprehension becomes difficult, about 100 is the practical upper bound.
Sparse diagrams stay readable longer than dense ones, so the node limit is
density-adaptive.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mermaid_sonar.rules.types import Issue, Rule, RuleConfig, density_band

if TYPE_CHECKING:
    from mermaid_sonar.analysis.metrics import Metrics
    from mermaid_sonar.diagram import Diagram

HUANG_2020 = (
    "Huang et al. (2020), Scalability of Network Visualisation from a Cognitive "
    "Load Perspective: https://arxiv.org/abs/2008.07944"
)
MCCABE_1976 = (
    "McCabe (1976), A Complexity Measure, IEEE TSE: https://doi.org/10.1109/TSE.1976.233837"
)

# ---------------------------------------------------------------------------
# max-edges
# ---------------------------------------------------------------------------


def check_max_edges(diagram: Diagram, metrics: Metrics, config: RuleConfig) -> Issue | None:
    threshold = config["threshold"]
    if metrics.edge_count <= threshold:
        return None
    return Issue(
        rule="max-edges",
        severity=config["severity"],
        message=(
            f"Diagram has {metrics.edge_count} edges, exceeding the limit of {threshold}"
        ),
        file_path=diagram.file_path,
        line=diagram.start_line,
        suggestion=(
            "Split the diagram into focused sub-diagrams, or group related "
            "nodes into subgraphs and link the groups instead of every node."
        ),
        citation=HUANG_2020,
    )


# ---------------------------------------------------------------------------
# max-nodes-high-density / max-nodes-low-density
# ---------------------------------------------------------------------------


def _node_limit_issue(
    name: str, band: str, diagram: Diagram, metrics: Metrics, config: RuleConfig
) -> Issue:
    threshold = config["threshold"]
    return Issue(
        rule=name,
        severity=config["severity"],
        message=(
            f"{band.capitalize()}-density diagram has {metrics.node_count} nodes, "
            f"exceeding the limit of {threshold} (density {metrics.density:.3f})"
        ),
        file_path=diagram.file_path,
        line=diagram.start_line,
        suggestion=(
            f"Aim for at most {threshold} nodes per diagram: split by phase or "
            "concern, or move detail into linked diagrams."
        ),
        citation=HUANG_2020,
    )


def check_max_nodes_high_density(
    diagram: Diagram, metrics: Metrics, config: RuleConfig
) -> Issue | None:
    if density_band(metrics, config["densityThreshold"]) != "high":
        return None
    if metrics.node_count <= config["threshold"]:
        return None
    return _node_limit_issue("max-nodes-high-density", "high", diagram, metrics, config)


def check_max_nodes_low_density(
    diagram: Diagram, metrics: Metrics, config: RuleConfig
) -> Issue | None:
    if density_band(metrics, config["densityThreshold"]) != "low":
        return None
    if metrics.node_count <= config["threshold"]:
        return None
    return _node_limit_issue("max-nodes-low-density", "low", diagram, metrics, config)


# ---------------------------------------------------------------------------
# cyclomatic-complexity
# ---------------------------------------------------------------------------


def check_cyclomatic_complexity(
    diagram: Diagram, metrics: Metrics, config: RuleConfig
) -> Issue | None:
    threshold = config["threshold"]
    complexity = metrics.cyclomatic_complexity
    if complexity <= threshold:
        return None
    return Issue(
        rule="cyclomatic-complexity",
        severity=config["severity"],
        message=f"Cyclomatic complexity of {complexity} exceeds the limit of {threshold}",
        file_path=diagram.file_path,
        line=diagram.start_line,
        suggestion=(
            "Reduce the number of independent paths: extract decision-heavy "
            "sections into their own diagrams or merge redundant branches."
        ),
        citation=MCCABE_1976,
    )


# ---------------------------------------------------------------------------
# disconnected-components
# ---------------------------------------------------------------------------


def check_disconnected_components(
    diagram: Diagram, metrics: Metrics, config: RuleConfig
) -> Issue | None:
    threshold = config["threshold"]
    count = metrics.component_count
    if count <= threshold:
        return None

    sizes = sorted((len(component) for component in metrics.components), reverse=True)
    listing = "\n".join(
        f"  - Component {idx}: {size} nodes" for idx, size in enumerate(sizes[:5], start=1)
    )
    return Issue(
        rule="disconnected-components",
        severity=config["severity"],
        message=f"Diagram contains {count} disconnected components",
        file_path=diagram.file_path,
        line=diagram.start_line,
        suggestion=(
            f"This diagram holds several separate graphs:\n\n{listing}\n\n"
            f"Consider splitting it into {count} diagrams, one per concern, "
            "and linking them if they are related."
        ),
    )


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

MAX_EDGES = Rule(
    name="max-edges",
    description="Limit the number of edges in one diagram",
    default_severity="error",
    check=check_max_edges,
    options={"threshold": 100},
)

MAX_NODES_HIGH_DENSITY = Rule(
    name="max-nodes-high-density",
    description="Limit node count of densely connected diagrams",
    default_severity="warning",
    check=check_max_nodes_high_density,
    options={"threshold": 50, "densityThreshold": 0.3},
)

MAX_NODES_LOW_DENSITY = Rule(
    name="max-nodes-low-density",
    description="Limit node count of sparsely connected diagrams",
    default_severity="warning",
    check=check_max_nodes_low_density,
    options={"threshold": 100, "densityThreshold": 0.3},
)

CYCLOMATIC_COMPLEXITY = Rule(
    name="cyclomatic-complexity",
    description="Limit independent paths (E - N + 2P)",
    default_severity="warning",
    check=check_cyclomatic_complexity,
    options={"threshold": 10},
)

DISCONNECTED_COMPONENTS = Rule(
    name="disconnected-components",
    description="Flag diagrams made of several unrelated graphs",
    default_severity="warning",
    check=check_disconnected_components,
    options={"threshold": 2},
)
