"""Rule system: rule descriptors, the registry and the evaluation engine."""

from mermaid_sonar.rules.engine import RuleEngine, evaluate
from mermaid_sonar.rules.registry import RULE_NAMES, RULES, default_config, get_rule
from mermaid_sonar.rules.types import (
    SEVERITIES,
    VALID_SEVERITIES,
    Issue,
    Rule,
    RuleConfig,
    density_band,
    select_tier,
)

__all__ = [
    "RULES",
    "RULE_NAMES",
    "SEVERITIES",
    "VALID_SEVERITIES",
    "Issue",
    "Rule",
    "RuleConfig",
    "RuleEngine",
    "default_config",
    "density_band",
    "evaluate",
    "get_rule",
    "select_tier",
]
