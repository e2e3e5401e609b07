"""Default lint configuration, built from the rule registry."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from mermaid_sonar.rules.registry import default_config


@dataclass(frozen=True)
class LintConfig:
    """Complete per-rule settings keyed by rule id."""

    rules: Mapping[str, Mapping[str, Any]] = field(default_factory=default_config)

    def rule(self, name: str) -> Mapping[str, Any]:
        return self.rules[name]

    def is_enabled(self, name: str) -> bool:
        return bool(self.rules.get(name, {}).get("enabled", True))


DEFAULT_CONFIG = LintConfig()
