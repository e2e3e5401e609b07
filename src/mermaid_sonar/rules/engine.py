"""Rule evaluation engine: run enabled rules over one diagram, in registry order.

The engine performs no I/O and never raises for a failing rule.  An
exception from a check becomes a single ``error`` issue scoped to that rule,
and evaluation continues with the remaining rules.
"""

from __future__ import annotations

import asyncio
import inspect
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from mermaid_sonar.rules.registry import RULES, SHARED_SETTINGS, get_rule
from mermaid_sonar.rules.types import Issue

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mermaid_sonar.analysis.metrics import Metrics
    from mermaid_sonar.config.defaults import LintConfig
    from mermaid_sonar.diagram import Diagram
    from mermaid_sonar.rules.types import Rule, RuleConfig


def _failure(rule: Rule, diagram: Diagram, reason: str) -> Issue:
    return Issue(
        rule=rule.name,
        severity="error",
        message=f"Rule '{rule.name}' failed: {reason}",
        file_path=diagram.file_path,
        line=diagram.start_line,
    )


def _describe(exc: Exception) -> str:
    return f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__


def _settings(rule: Rule, config: LintConfig) -> dict[str, Any]:
    settings = rule.default_config()
    settings.update(config.rules.get(rule.name, {}))
    return settings


class RuleEngine:
    """Evaluate a fixed rule set against diagrams under one configuration.

    Each rule's settings are its defaults overlaid with the configured
    values, so checks always see a complete mapping.  A setting listed in
    ``SHARED_SETTINGS`` is always taken from its owning rule, so both
    node-count rules classify density with the same cutoff.  Rules whose
    settings say ``enabled: False`` are never invoked.
    """

    def __init__(self, config: LintConfig, rules: Sequence[Rule] = RULES) -> None:
        self._active: list[tuple[Rule, RuleConfig]] = []
        for rule in rules:
            settings = _settings(rule, config)
            shared = SHARED_SETTINGS.get(rule.name)
            if shared is not None:
                owner, key = shared
                settings[key] = _settings(get_rule(owner), config)[key]
            if settings.get("enabled", True):
                self._active.append((rule, MappingProxyType(settings)))

    @property
    def active_rules(self) -> tuple[str, ...]:
        return tuple(rule.name for rule, _ in self._active)

    # -- synchronous ---------------------------------------------------------

    def evaluate(self, diagram: Diagram, metrics: Metrics) -> list[Issue]:
        """Run every enabled rule and return their issues in registry order."""
        issues: list[Issue] = []
        for rule, settings in self._active:
            issue = self._run(rule, settings, diagram, metrics)
            if issue is not None:
                issues.append(issue)
        return issues

    def _run(
        self, rule: Rule, settings: RuleConfig, diagram: Diagram, metrics: Metrics
    ) -> Issue | None:
        try:
            result = rule.check(diagram, metrics, settings)
        except Exception as exc:
            return _failure(rule, diagram, _describe(exc))

        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            return _failure(rule, diagram, "check is asynchronous; use evaluate_async")
        return self._accept(rule, diagram, result)

    # -- asynchronous --------------------------------------------------------

    async def evaluate_async(
        self, diagram: Diagram, metrics: Metrics, *, concurrent: bool = False
    ) -> list[Issue]:
        """Like :meth:`evaluate`, awaiting asynchronous checks.

        With *concurrent* the checks run as parallel tasks; results are still
        collected in registry order.  Cancelling the caller cancels pending
        checks and propagates ``CancelledError``.
        """
        if concurrent:
            results = await asyncio.gather(
                *(
                    self._run_async(rule, settings, diagram, metrics)
                    for rule, settings in self._active
                )
            )
        else:
            results = []
            for rule, settings in self._active:
                results.append(await self._run_async(rule, settings, diagram, metrics))
        return [issue for issue in results if issue is not None]

    async def _run_async(
        self, rule: Rule, settings: RuleConfig, diagram: Diagram, metrics: Metrics
    ) -> Issue | None:
        try:
            result = rule.check(diagram, metrics, settings)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            return _failure(rule, diagram, _describe(exc))
        return self._accept(rule, diagram, result)

    @staticmethod
    def _accept(rule: Rule, diagram: Diagram, result: object) -> Issue | None:
        if result is None or isinstance(result, Issue):
            return result
        return _failure(rule, diagram, f"check returned {type(result).__name__}, not an Issue")


def evaluate(diagram: Diagram, metrics: Metrics, config: LintConfig) -> list[Issue]:
    """Evaluate the registered rules against *diagram* under *config*."""
    return RuleEngine(config).evaluate(diagram, metrics)
