"""Label and identifier rules: long labels and reserved-word node ids."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mermaid_sonar.analysis.metrics import LONG_LABEL_THRESHOLD, find_long_labels
from mermaid_sonar.rules.types import Issue, Rule, RuleConfig

if TYPE_CHECKING:
    from mermaid_sonar.analysis.metrics import Metrics
    from mermaid_sonar.diagram import Diagram

MERMAID_FLOWCHART_DOCS = "Mermaid flowchart syntax: https://mermaid.js.org/syntax/flowchart.html"

MAX_EXAMPLES = 3


def check_long_labels(diagram: Diagram, metrics: Metrics, config: RuleConfig) -> Issue | None:
    threshold = config["threshold"]
    if threshold == LONG_LABEL_THRESHOLD:
        hits = metrics.long_labels
    else:
        hits = find_long_labels(diagram.nodes, threshold)
    if not hits:
        return None

    examples = "\n".join(
        f'  - {hit.node_id}: "{hit.label}" ({hit.length} chars)' for hit in hits[:MAX_EXAMPLES]
    )
    return Issue(
        rule="long-labels",
        severity=config["severity"],
        message=f"{len(hits)} node(s) with labels exceeding {threshold} characters",
        file_path=diagram.file_path,
        line=diagram.start_line,
        suggestion=(
            f"Long labels reduce diagram readability:\n\n{examples}\n\n"
            "Use abbreviations for technical terms, move detail into the "
            "surrounding text, or split the node."
        ),
        citation=MERMAID_FLOWCHART_DOCS,
    )


def check_reserved_words(diagram: Diagram, metrics: Metrics, config: RuleConfig) -> Issue | None:
    hits = metrics.reserved_word_hits
    if not hits:
        return None

    reserved = [hit.node_id for hit in hits if hit.kind == "reserved"]
    patterned = [hit.node_id for hit in hits if hit.kind == "pattern"]
    parts: list[str] = []
    if reserved:
        parts.append(f"reserved word(s): {', '.join(reserved)}")
    if patterned:
        parts.append(f"conflicting pattern(s): {', '.join(patterned)}")

    advice: list[str] = []
    for node_id in reserved:
        advice.append(f'  - Rename "{node_id}" to "{node_id}Node" or "{node_id}_state"')
    for node_id in patterned:
        advice.append(
            f'  - Rename "{node_id}" so it does not read as an arrow head '
            f'(e.g. "node_{node_id}")'
        )

    return Issue(
        rule="reserved-words",
        severity=config["severity"],
        message=f"Node ids collide with Mermaid syntax: {'; '.join(parts)}",
        file_path=diagram.file_path,
        line=diagram.start_line,
        suggestion=(
            "These ids can break parsing or render unexpectedly:\n\n" + "\n".join(advice)
        ),
        citation=MERMAID_FLOWCHART_DOCS,
    )


LONG_LABELS = Rule(
    name="long-labels",
    description="Keep node labels short",
    default_severity="warning",
    check=check_long_labels,
    options={"threshold": LONG_LABEL_THRESHOLD},
)

RESERVED_WORDS = Rule(
    name="reserved-words",
    description="Avoid node ids that collide with Mermaid keywords",
    default_severity="warning",
    check=check_reserved_words,
)
