"""Layout rules: direction recommendation and long chains per direction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from mermaid_sonar.rules.types import Issue, Rule, RuleConfig

if TYPE_CHECKING:
    from mermaid_sonar.analysis.metrics import Metrics
    from mermaid_sonar.diagram import Diagram

LAYOUT_DIAGRAM_TYPES: frozenset[str] = frozenset({"flowchart", "graph", "state"})
MIN_LAYOUT_NODES = 3
SEQUENTIAL_RATIO = 0.6
MAX_HORIZONTAL_CHAIN = 8

# Fixed weights of the layout confidence score; they sum to 1.
MISMATCH_WEIGHT = 0.5
ASPECT_WEIGHT = 0.3
CHAIN_WEIGHT = 0.2

# ---------------------------------------------------------------------------
# layout-hint
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LayoutScore:
    """Outcome of the layout heuristic for one diagram."""

    current: str
    suggested: str
    sequential: bool
    confidence: float


def _orientation(direction: str | None) -> str:
    return "LR" if direction in ("LR", "RL") else "TD"


def _skew(a: float, b: float) -> float:
    """``|a - b| / (a + b)``: 0 for equal sides, approaching 1 when one dominates."""
    total = a + b
    return abs(a - b) / total if total > 0 else 0.0


def score_layout(diagram: Diagram, metrics: Metrics) -> LayoutScore | None:
    """Score how strongly the diagram's shape disagrees with its direction.

    The aspect signal averages two skews: rank shape (chain depth against
    branch width) and the estimated width against the estimated height.
    Returns ``None`` for diagrams too small or of a kind without a flow
    direction.
    """
    if diagram.type not in LAYOUT_DIAGRAM_TYPES or metrics.node_count < MIN_LAYOUT_NODES:
        return None

    depth = metrics.longest_chain_length
    breadth = max(metrics.max_branch_width, 1)
    chain_ratio = depth / metrics.node_count
    sequential = chain_ratio >= SEQUENTIAL_RATIO

    if sequential:
        suggested = "LR" if depth <= MAX_HORIZONTAL_CHAIN else "TD"
        chain_signal = chain_ratio
    else:
        suggested = "TD"
        chain_signal = 1.0 - chain_ratio

    current = _orientation(diagram.direction)
    mismatch = 1.0 if current != suggested else 0.0
    aspect_signal = (
        _skew(depth, breadth) + _skew(metrics.estimated_width, metrics.estimated_height)
    ) / 2

    confidence = (
        MISMATCH_WEIGHT * mismatch + ASPECT_WEIGHT * aspect_signal + CHAIN_WEIGHT * chain_signal
    )
    return LayoutScore(
        current=current,
        suggested=suggested,
        sequential=sequential,
        confidence=round(min(max(confidence, 0.0), 1.0), 3),
    )


def check_layout_hint(diagram: Diagram, metrics: Metrics, config: RuleConfig) -> Issue | None:
    score = score_layout(diagram, metrics)
    if score is None or score.current == score.suggested:
        return None
    if score.confidence < config["minConfidence"]:
        return None

    if score.sequential and score.suggested == "LR":
        reason = "Sequential flow detected; a left-right layout reads more naturally"
    elif score.sequential:
        reason = "Long sequential flow detected; a top-down layout avoids horizontal scrolling"
    else:
        reason = "Branching structure detected; a top-down layout shows the hierarchy better"

    current = diagram.direction or "TD"
    return Issue(
        rule="layout-hint",
        severity=config["severity"],
        message=(
            f"{reason} (current: {current}, suggested: {score.suggested}, "
            f"confidence {score.confidence:.2f})"
        ),
        file_path=diagram.file_path,
        line=diagram.start_line,
        suggestion=(
            f"Consider changing the layout to {score.suggested}:\n\n"
            f"flowchart {score.suggested}\n  A --> B --> C"
        ),
    )


# ---------------------------------------------------------------------------
# horizontal-chain-too-long
# ---------------------------------------------------------------------------


def _preview(path: tuple[str, ...]) -> str:
    if len(path) > 4:
        return f"{' → '.join(path[:3])} ... → {path[-1]}"
    return " → ".join(path)


def check_chain_length(diagram: Diagram, metrics: Metrics, config: RuleConfig) -> Issue | None:
    thresholds = config["thresholds"]
    horizontal = diagram.is_horizontal
    threshold = thresholds.get("LR", 8) if horizontal else thresholds.get("TD", 12)
    length = metrics.longest_chain_length
    if length <= threshold:
        return None

    layout = diagram.direction or "TD"
    path = metrics.longest_chain
    half = (len(path) + 1) // 2
    steps = [
        "Organize the chain into subgraphs by phase:\n\n"
        f"subgraph Phase1\n  {' --> '.join(path[:half])}\nend\n"
        f"subgraph Phase2\n  {' --> '.join(path[half:])}\nend",
        "Remove intermediate steps and keep the key transitions",
    ]
    if horizontal:
        steps.insert(0, "Convert to a TD (top-down) layout so the chain scrolls vertically")
        shape = "This creates excessive width in a horizontal layout."
    else:
        shape = "This creates an excessively tall diagram."

    numbered = "\n\n".join(f"{idx}. {step}" for idx, step in enumerate(steps, start=1))
    return Issue(
        rule="horizontal-chain-too-long",
        severity=config["severity"],
        message=(
            f"Chain of {length} nodes in {layout} layout exceeds the "
            f"{threshold}-node limit for {'horizontal' if horizontal else 'vertical'} layouts"
        ),
        file_path=diagram.file_path,
        line=diagram.start_line,
        suggestion=(
            f"Chain of {length} nodes detected:\n{_preview(path)}\n\n{shape}\n\n"
            f"Suggestions:\n{numbered}"
        ),
    )


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

LAYOUT_HINT = Rule(
    name="layout-hint",
    description="Suggest a better layout direction for the diagram's shape",
    default_severity="warning",
    check=check_layout_hint,
    options={"minConfidence": 0.6},
)

HORIZONTAL_CHAIN_TOO_LONG = Rule(
    name="horizontal-chain-too-long",
    description="Limit chain length per layout direction",
    default_severity="warning",
    check=check_chain_length,
    options={"thresholds": {"LR": 8, "TD": 12}},
)
