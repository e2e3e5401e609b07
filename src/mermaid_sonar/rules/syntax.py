"""syntax-validation: surface structural problems recorded by the extractor."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mermaid_sonar.rules.types import Issue, Rule, RuleConfig

if TYPE_CHECKING:
    from mermaid_sonar.analysis.metrics import Metrics
    from mermaid_sonar.diagram import Diagram

MERMAID_INTRO = "https://mermaid.js.org/intro/"


def suggest_fix(error: str) -> str:
    """Map a parse error message to an actionable hint."""
    lowered = error.lower()
    if "->" in error or "arrow" in lowered:
        return 'Use "-->" for edges in Mermaid diagrams, not "->" or "=>"'
    if "diagram type" in lowered or "unrecognized" in lowered:
        return (
            "Supported types: graph, flowchart, stateDiagram, classDiagram. "
            f"See: {MERMAID_INTRO}"
        )
    if "subgraph" in lowered:
        return 'Close every "subgraph" with a matching "end" line'
    if any(ch in error for ch in "[]{}()"):
        return "Ensure all brackets and braces are properly closed"
    if "empty" in lowered:
        return "Add at least one node or edge below the diagram header"
    return f"Fix the syntax error according to the Mermaid documentation: {MERMAID_INTRO}"


def check_syntax(diagram: Diagram, metrics: Metrics, config: RuleConfig) -> Issue | None:
    if not diagram.parse_errors:
        return None
    first = diagram.parse_errors[0]
    extra = len(diagram.parse_errors) - 1
    message = f"Syntax error: {first}"
    if extra:
        message += f" (and {extra} more)"
    return Issue(
        rule="syntax-validation",
        severity=config["severity"],
        message=message,
        file_path=diagram.file_path,
        line=diagram.start_line,
        suggestion=suggest_fix(first),
    )


SYNTAX_VALIDATION = Rule(
    name="syntax-validation",
    description="Report diagrams that failed to parse",
    default_severity="error",
    check=check_syntax,
)
