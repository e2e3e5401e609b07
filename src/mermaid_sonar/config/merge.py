"""Configuration merger: overlay user overrides onto a base ``LintConfig``.

Overrides are merged per rule and per field.  A field with an invalid value
keeps the base value, unknown rule ids are ignored, and nested mappings such
as ``thresholds`` replace the base mapping wholesale.  Merging never raises.

Accepted override shapes::

    {"rules": {"max-edges": {"threshold": 150}, "layout-hint": False},
     "viewport": {"maxWidth": 1600}}

    {"viewport": {"profile": "wiki",
                  "profiles": {"wiki": {"maxWidth": 1100, "maxHeight": 1600,
                                        "widthThresholds": {"info": 700}}}}}

Rule ids may also appear at the top level instead of under ``rules``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from mermaid_sonar.config.defaults import LintConfig
from mermaid_sonar.rules.registry import RULE_NAMES, get_rule
from mermaid_sonar.rules.types import VALID_SEVERITIES

logger = logging.getLogger(__name__)

# Numeric fields; the value is the inclusive upper bound, if any.
NUMERIC_FIELDS: dict[str, float | None] = {
    "threshold": None,
    "densityThreshold": 1.0,
    "minConfidence": 1.0,
    "nodeSpacing": None,
    "charWidth": None,
    "nodeHeight": None,
    "verticalSpacing": None,
}

# info / warning / error cutoffs as fractions of a viewport limit
VIEWPORT_TIERS: dict[str, float] = {"info": 0.6, "warning": 0.8, "error": 1.0}

# limit key -> (profile tier-map key, rule whose thresholds it sets)
VIEWPORT_LIMITS: dict[str, tuple[str, str]] = {
    "maxWidth": ("widthThresholds", "horizontal-width-readability"),
    "maxHeight": ("heightThresholds", "vertical-height-readability"),
}

# Built-in rendering contexts, selectable with ``viewport.profile``.
VIEWPORT_PROFILES: dict[str, dict[str, int]] = {
    "default": {"maxWidth": 2500, "maxHeight": 2000},
    "mkdocs": {"maxWidth": 800, "maxHeight": 1500},
    "docusaurus": {"maxWidth": 900, "maxHeight": 1500},
    "github": {"maxWidth": 1000, "maxHeight": 1800},
    "mobile": {"maxWidth": 400, "maxHeight": 800},
}


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _valid_field(name: str, value: Any) -> bool:
    """Whether *value* is acceptable for rule field *name*."""
    if name == "enabled":
        return isinstance(value, bool)
    if name == "severity":
        return value in VALID_SEVERITIES
    if name in NUMERIC_FIELDS:
        upper = NUMERIC_FIELDS[name]
        return _is_number(value) and value >= 0 and (upper is None or value <= upper)
    if name == "thresholds":
        return (
            isinstance(value, Mapping)
            and bool(value)
            and all(isinstance(k, str) and _is_number(v) and v >= 0 for k, v in value.items())
        )
    return value is not None


def _copy_settings(settings: Mapping[str, Any]) -> dict[str, Any]:
    return {
        key: dict(value) if isinstance(value, Mapping) else value
        for key, value in settings.items()
    }


def merge_rule(base: Mapping[str, Any], override: Any) -> dict[str, Any]:
    """Merge one rule's override onto its base settings."""
    merged = _copy_settings(base)
    if isinstance(override, bool):
        merged["enabled"] = override
        return merged
    if not isinstance(override, Mapping):
        return merged
    for key, value in override.items():
        if not isinstance(key, str) or not _valid_field(key, value):
            continue
        merged[key] = dict(value) if isinstance(value, Mapping) else value
    return merged


def _rule_overrides(overrides: Mapping[str, Any]) -> dict[str, Any]:
    found = {name: overrides[name] for name in RULE_NAMES if name in overrides}
    nested = overrides.get("rules")
    if isinstance(nested, Mapping):
        found.update({name: nested[name] for name in RULE_NAMES if name in nested})
    return found


def viewport_tiers(limit: float) -> dict[str, int]:
    """Tier map for a viewport limit: info 60%, warning 80%, error 100%."""
    return {tier: round(limit * fraction) for tier, fraction in VIEWPORT_TIERS.items()}


def _valid_limit(value: Any) -> bool:
    return _is_number(value) and value > 0


def resolve_profile(viewport: Mapping[str, Any]) -> Mapping[str, Any] | None:
    """The profile named by ``viewport.profile``, or ``None``.

    Built-in profiles are looked up first, then ``viewport.profiles``.  An
    unknown name is logged and ignored.
    """
    name = viewport.get("profile")
    if not isinstance(name, str):
        return None
    if name in VIEWPORT_PROFILES:
        return VIEWPORT_PROFILES[name]
    custom = viewport.get("profiles")
    if isinstance(custom, Mapping) and isinstance(custom.get(name), Mapping):
        return custom[name]
    logger.warning("Unknown viewport profile '%s' ignored", name)
    return None


def profile_tiers(limit: float, tiers: Any) -> dict[str, int]:
    """Tier map for a profile limit, honouring its ``info``/``warning`` cutoffs.

    The error tier is always the limit.  Custom cutoffs that are not ordered
    ``info <= warning <= limit`` are dropped in favour of the 60/80% split.
    """
    result = viewport_tiers(limit)
    if not isinstance(tiers, Mapping):
        return result
    custom = dict(result)
    for tier in ("info", "warning"):
        value = tiers.get(tier)
        if _is_number(value) and value >= 0:
            custom[tier] = round(value)
    if custom["info"] <= custom["warning"] <= custom["error"]:
        return custom
    return result


def apply_viewport(rules: dict[str, dict[str, Any]], viewport: Any) -> None:
    """Rewrite the width/height tier maps from the viewport section.

    A direct ``maxWidth``/``maxHeight`` wins over the selected profile's
    limit.  An axis with neither keeps the rule's configured thresholds.
    """
    if not isinstance(viewport, Mapping):
        return
    profile = resolve_profile(viewport)
    for key, (tiers_key, rule_name) in VIEWPORT_LIMITS.items():
        limit = viewport.get(key)
        if _valid_limit(limit):
            rules[rule_name]["thresholds"] = viewport_tiers(limit)
        elif profile is not None and _valid_limit(profile.get(key)):
            rules[rule_name]["thresholds"] = profile_tiers(profile[key], profile.get(tiers_key))


def merge_config(base: LintConfig, overrides: Mapping[str, Any] | None) -> LintConfig:
    """Return a new config: *base* with *overrides* applied.  *base* is untouched."""
    rules: dict[str, dict[str, Any]] = {}
    for name in RULE_NAMES:
        rules[name] = get_rule(name).default_config()
        rules[name].update(_copy_settings(base.rules.get(name, {})))
    if not isinstance(overrides, Mapping):
        return LintConfig(rules=rules)

    for name, override in _rule_overrides(overrides).items():
        rules[name] = merge_rule(rules[name], override)

    # Both node-count rules classify density with the same cutoff.
    rules["max-nodes-low-density"]["densityThreshold"] = rules["max-nodes-high-density"][
        "densityThreshold"
    ]

    apply_viewport(rules, overrides.get("viewport"))
    return LintConfig(rules=rules)
