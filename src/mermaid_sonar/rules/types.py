"""Rule system types: severities, issues, rule descriptors and shared decisions."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from mermaid_sonar.analysis.metrics import Metrics
    from mermaid_sonar.diagram import Diagram

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SEVERITIES: tuple[str, ...] = ("error", "warning", "info")  # most severe first
VALID_SEVERITIES: frozenset[str] = frozenset(SEVERITIES)

RuleConfig = Mapping[str, Any]

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Issue:
    """A single finding produced by one rule for one diagram."""

    rule: str
    severity: str  # "error" | "warning" | "info"
    message: str
    file_path: str
    line: int
    suggestion: str | None = None
    citation: str | None = None


CheckResult = Union[Issue, None, Awaitable[Union[Issue, None]]]
CheckFn = Callable[["Diagram", "Metrics", RuleConfig], CheckResult]


@dataclass(frozen=True)
class Rule:
    """A named check plus its default settings.

    *options* holds every default config field besides ``enabled`` and
    ``severity`` (thresholds and rule-specific extras).  *check* must not
    mutate its arguments; it returns an ``Issue``, ``None``, or an awaitable
    of either.
    """

    name: str
    description: str
    default_severity: str
    check: CheckFn
    options: Mapping[str, Any] = field(default_factory=dict)

    def default_config(self) -> dict[str, Any]:
        """A fresh default config mapping for this rule."""
        config: dict[str, Any] = {"enabled": True, "severity": self.default_severity}
        for key, value in self.options.items():
            config[key] = dict(value) if isinstance(value, Mapping) else value
        return config


# ---------------------------------------------------------------------------
# Shared decisions
# ---------------------------------------------------------------------------


def select_tier(value: float, tiers: Mapping[str, Any]) -> str | None:
    """Return the most severe tier whose cutoff *value* reaches, or ``None``.

    *tiers* maps severity names (``info``/``warning``/``error``) to cutoffs;
    missing or non-numeric tiers are ignored.
    """
    for severity in SEVERITIES:
        cutoff = tiers.get(severity)
        if isinstance(cutoff, bool) or not isinstance(cutoff, int | float):
            continue
        if value >= cutoff:
            return severity
    return None


def density_band(metrics: Metrics, density_threshold: float) -> str:
    """Classify a diagram as ``"high"`` or ``"low"`` density."""
    return "high" if metrics.density >= density_threshold else "low"
