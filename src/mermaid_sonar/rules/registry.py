"""The fixed, ordered set of rules.  Registration order is evaluation order."""

from __future__ import annotations

from typing import Any

from mermaid_sonar.rules.complexity import (
    CYCLOMATIC_COMPLEXITY,
    DISCONNECTED_COMPONENTS,
    MAX_EDGES,
    MAX_NODES_HIGH_DENSITY,
    MAX_NODES_LOW_DENSITY,
)
from mermaid_sonar.rules.labels import LONG_LABELS, RESERVED_WORDS
from mermaid_sonar.rules.layout import HORIZONTAL_CHAIN_TOO_LONG, LAYOUT_HINT
from mermaid_sonar.rules.readability import (
    CLASS_DIAGRAM_WIDTH,
    HORIZONTAL_WIDTH_READABILITY,
    VERTICAL_HEIGHT_READABILITY,
)
from mermaid_sonar.rules.syntax import SYNTAX_VALIDATION
from mermaid_sonar.rules.types import Rule

RULES: tuple[Rule, ...] = (
    SYNTAX_VALIDATION,
    MAX_EDGES,
    MAX_NODES_HIGH_DENSITY,
    MAX_NODES_LOW_DENSITY,
    CYCLOMATIC_COMPLEXITY,
    LAYOUT_HINT,
    HORIZONTAL_CHAIN_TOO_LONG,
    HORIZONTAL_WIDTH_READABILITY,
    VERTICAL_HEIGHT_READABILITY,
    CLASS_DIAGRAM_WIDTH,
    LONG_LABELS,
    RESERVED_WORDS,
    DISCONNECTED_COMPONENTS,
)

RULE_NAMES: tuple[str, ...] = tuple(rule.name for rule in RULES)

_BY_NAME: dict[str, Rule] = {rule.name: rule for rule in RULES}


def get_rule(name: str) -> Rule:
    """Look up a registered rule by id.  Raises ``KeyError`` for unknown ids."""
    return _BY_NAME[name]


def default_config() -> dict[str, dict[str, Any]]:
    """Fresh default settings for every registered rule, in registry order."""
    return {rule.name: rule.default_config() for rule in RULES}


# Settings one rule reads from another: reader -> (owner, key).
SHARED_SETTINGS: dict[str, tuple[str, str]] = {
    MAX_NODES_LOW_DENSITY.name: (MAX_NODES_HIGH_DENSITY.name, "densityThreshold"),
}
