"""Readability rules: estimated rendered width and height against viewport tiers.

Each rule compares one size estimate against a tier map
(``{"info": ..., "warning": ..., "error": ...}``) and reports the most
severe tier reached.  The tier, not the rule's configured severity, decides
the issue's severity.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mermaid_sonar.analysis.metrics import estimate_height, estimate_width
from mermaid_sonar.rules.types import Issue, Rule, RuleConfig, select_tier

if TYPE_CHECKING:
    from mermaid_sonar.analysis.metrics import Metrics
    from mermaid_sonar.diagram import Diagram

_TIER_TARGET = {"info": "comfortable", "warning": "recommended", "error": "maximum"}


def _diagram_width(diagram: Diagram, metrics: Metrics, config: RuleConfig) -> int:
    if "nodeSpacing" not in config and "charWidth" not in config:
        return metrics.estimated_width
    kwargs = {}
    if "nodeSpacing" in config:
        kwargs["node_spacing"] = config["nodeSpacing"]
    if "charWidth" in config:
        kwargs["char_width"] = config["charWidth"]
    return estimate_width(diagram.nodes, **kwargs)


def _diagram_height(metrics: Metrics, config: RuleConfig) -> int:
    if "nodeHeight" not in config and "verticalSpacing" not in config:
        return metrics.estimated_height
    kwargs = {}
    if "nodeHeight" in config:
        kwargs["node_height"] = config["nodeHeight"]
    if "verticalSpacing" in config:
        kwargs["vertical_spacing"] = config["verticalSpacing"]
    return estimate_height(metrics.node_count, **kwargs)


def _tier_issue(
    rule: str,
    dimension: str,
    value: int,
    tier: str,
    tiers: RuleConfig,
    diagram: Diagram,
    suggestion: str,
) -> Issue:
    cutoff = tiers[tier]
    return Issue(
        rule=rule,
        severity=tier,
        message=(
            f"Diagram {dimension} (~{value}px) exceeds the {_TIER_TARGET[tier]} "
            f"{dimension} of {cutoff}px by {value - cutoff}px"
        ),
        file_path=diagram.file_path,
        line=diagram.start_line,
        suggestion=suggestion,
    )


# ---------------------------------------------------------------------------
# horizontal-width-readability
# ---------------------------------------------------------------------------


def check_width(diagram: Diagram, metrics: Metrics, config: RuleConfig) -> Issue | None:
    if diagram.type == "class":
        return None
    width = _diagram_width(diagram, metrics, config)
    tiers = config["thresholds"]
    tier = select_tier(width, tiers)
    if tier is None:
        return None

    if diagram.is_horizontal:
        advice = (
            "Horizontal layouts grow with every node in a chain. Convert to a "
            "TD layout, or split the flow into stages."
        )
    else:
        advice = (
            "Wide branching spreads nodes sideways. Group parallel branches "
            "into subgraphs, or shorten labels."
        )
    return _tier_issue("horizontal-width-readability", "width", width, tier, tiers, diagram, advice)


# ---------------------------------------------------------------------------
# vertical-height-readability
# ---------------------------------------------------------------------------


def check_height(diagram: Diagram, metrics: Metrics, config: RuleConfig) -> Issue | None:
    height = _diagram_height(metrics, config)
    tiers = config["thresholds"]
    tier = select_tier(height, tiers)
    if tier is None:
        return None
    return _tier_issue(
        "vertical-height-readability",
        "height",
        height,
        tier,
        tiers,
        diagram,
        "Tall diagrams force scrolling past the flow. Split the diagram into "
        "phases, or use an LR layout for short sequential sections.",
    )


# ---------------------------------------------------------------------------
# class-diagram-width
# ---------------------------------------------------------------------------


def check_class_width(diagram: Diagram, metrics: Metrics, config: RuleConfig) -> Issue | None:
    if diagram.type != "class":
        return None
    width = _diagram_width(diagram, metrics, config)
    tiers = config["thresholds"]
    tier = select_tier(width, tiers)
    if tier is None:
        return None
    return _tier_issue(
        "class-diagram-width",
        "width",
        width,
        tier,
        tiers,
        diagram,
        "Split the class diagram by package or bounded context, or hide "
        "members that are not relevant to the diagram's purpose.",
    )


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

HORIZONTAL_WIDTH_READABILITY = Rule(
    name="horizontal-width-readability",
    description="Keep estimated width within viewport tiers",
    default_severity="warning",
    check=check_width,
    options={"thresholds": {"info": 1200, "warning": 1500, "error": 2500}},
)

VERTICAL_HEIGHT_READABILITY = Rule(
    name="vertical-height-readability",
    description="Keep estimated height within viewport tiers",
    default_severity="warning",
    check=check_height,
    options={"thresholds": {"info": 800, "warning": 1200, "error": 2000}},
)

CLASS_DIAGRAM_WIDTH = Rule(
    name="class-diagram-width",
    description="Keep class diagram width within viewport tiers",
    default_severity="warning",
    check=check_class_width,
    options={"thresholds": {"info": 1500, "warning": 2000, "error": 2500}},
)
