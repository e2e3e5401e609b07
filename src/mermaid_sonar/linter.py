"""Linter orchestrator: discover files, extract diagrams, evaluate rules, format results."""

from __future__ import annotations

import json
import logging
import time
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from rich.markup import escape

from mermaid_sonar.analysis import analyze
from mermaid_sonar.config.defaults import DEFAULT_CONFIG
from mermaid_sonar.extractors import extract_diagrams_from_file
from mermaid_sonar.files import find_files
from mermaid_sonar.rules.engine import RuleEngine

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rich.console import Console

    from mermaid_sonar.analysis.metrics import Metrics
    from mermaid_sonar.config.defaults import LintConfig
    from mermaid_sonar.diagram import Diagram
    from mermaid_sonar.rules.types import Issue

logger = logging.getLogger(__name__)

SEVERITY_STYLES: dict[str, str] = {"error": "bold red", "warning": "yellow", "info": "cyan"}
SEVERITY_ICONS: dict[str, str] = {"error": "✗", "warning": "⚠", "info": "ℹ"}

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LintError(Exception):
    """Raised when a lint run cannot start (e.g. no files match)."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DiagramResult:
    """One diagram with its metrics and issues."""

    diagram: Diagram
    metrics: Metrics
    issues: tuple[Issue, ...]


@dataclass
class LintResult:
    """Result of a lint run."""

    diagrams: list[DiagramResult] = field(default_factory=list)
    files_scanned: int = 0
    unreadable_files: list[str] = field(default_factory=list)
    rules_evaluated: int = 0
    elapsed_ms: float = 0.0

    @property
    def issues(self) -> list[Issue]:
        return [issue for result in self.diagrams for issue in result.issues]

    def count(self, severity: str) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    @property
    def errors(self) -> int:
        return self.count("error")

    @property
    def warnings(self) -> int:
        return self.count("warning")

    @property
    def infos(self) -> int:
        return self.count("info")


# ---------------------------------------------------------------------------
# Main entry points
# ---------------------------------------------------------------------------


def lint_diagram(diagram: Diagram, engine: RuleEngine) -> DiagramResult:
    """Analyze one diagram and evaluate the engine's rules against it."""
    metrics = analyze(diagram)
    return DiagramResult(
        diagram=diagram, metrics=metrics, issues=tuple(engine.evaluate(diagram, metrics))
    )


def lint_files(files: Sequence[Path], config: LintConfig = DEFAULT_CONFIG) -> LintResult:
    """Lint already-resolved *files*.  Unreadable files are logged and skipped."""
    start = time.monotonic()
    engine = RuleEngine(config)
    result = LintResult(rules_evaluated=len(engine.active_rules))

    for path in files:
        try:
            diagrams = extract_diagrams_from_file(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read %s: %s", path, exc)
            result.unreadable_files.append(str(path))
            continue
        result.files_scanned += 1
        for diagram in diagrams:
            result.diagrams.append(lint_diagram(diagram, engine))

    result.elapsed_ms = (time.monotonic() - start) * 1000
    logger.info(
        "Linted %d diagram(s) in %d file(s) in %.1fms",
        len(result.diagrams),
        result.files_scanned,
        result.elapsed_ms,
    )
    return result


def lint(
    paths: Sequence[str],
    *,
    config: LintConfig = DEFAULT_CONFIG,
    recursive: bool = False,
) -> LintResult:
    """Resolve *paths* (files, directories, globs) and lint every diagram found.

    Raises
    ------
    LintError
        When no file matches *paths*.
    """
    files = find_files(paths, recursive=recursive)
    if not files:
        msg = f"No Markdown or Mermaid files found for: {', '.join(paths)}"
        raise LintError(msg)
    return lint_files(files, config)


def exit_code(result: LintResult, *, strict: bool = False, max_warnings: int | None = None) -> int:
    """``1`` on errors, on warnings under *strict*, or too many warnings; else ``0``."""
    if result.errors:
        return 1
    if strict and result.warnings:
        return 1
    if max_warnings is not None and result.warnings > max_warnings:
        return 1
    return 0


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def _display_path(file_path: str) -> str:
    try:
        return str(Path(file_path).relative_to(Path.cwd()))
    except ValueError:
        return file_path


def render_rich(result: LintResult, console: Console) -> None:
    """Print issues grouped by file, followed by a summary line."""
    by_file: dict[str, list[Issue]] = {}
    for issue in result.issues:
        by_file.setdefault(issue.file_path, []).append(issue)

    for file_path, issues in by_file.items():
        console.print(f"[bold underline]{escape(_display_path(file_path))}[/]")
        for issue in issues:
            style = SEVERITY_STYLES[issue.severity]
            icon = SEVERITY_ICONS[issue.severity]
            console.print(
                f"  [{style}]{icon} {issue.severity}[/] line {issue.line}  "
                f"{escape(issue.message)} [dim]({issue.rule})[/]",
                highlight=False,
            )
            if issue.suggestion:
                for line in issue.suggestion.splitlines():
                    console.print(f"      [dim]{escape(line)}[/]", highlight=False)
            if issue.citation:
                console.print(f"      [dim italic]{escape(issue.citation)}[/]", highlight=False)
        console.print()

    elapsed = f"{result.elapsed_ms / 1000:.2f}s"
    counts = (
        f"{len(result.diagrams)} diagram(s) in {result.files_scanned} file(s), "
        f"{result.rules_evaluated} rules, {elapsed}"
    )
    if result.issues:
        console.print(
            f"[bold red]{result.errors} error(s)[/], [yellow]{result.warnings} warning(s)[/], "
            f"[cyan]{result.infos} info[/] ({counts})"
        )
    else:
        console.print(f"[green]✓ No issues found[/] ({counts})")


def _issue_dict(issue: Issue) -> dict[str, object]:
    return {
        "rule": issue.rule,
        "severity": issue.severity,
        "message": issue.message,
        "file_path": issue.file_path,
        "line": issue.line,
        "suggestion": issue.suggestion,
        "citation": issue.citation,
    }


def format_json(result: LintResult) -> str:
    """Structured JSON: one entry per diagram plus a ``summary`` object."""
    diagrams: list[dict[str, object]] = []
    for item in result.diagrams:
        metrics = item.metrics
        diagrams.append(
            {
                "file_path": item.diagram.file_path,
                "line": item.diagram.start_line,
                "type": item.diagram.type,
                "metrics": {
                    "node_count": metrics.node_count,
                    "edge_count": metrics.edge_count,
                    "density": round(metrics.density, 4),
                    "average_degree": round(metrics.average_degree, 2),
                    "cyclomatic_complexity": metrics.cyclomatic_complexity,
                    "component_count": metrics.component_count,
                    "longest_chain_length": metrics.longest_chain_length,
                },
                "issues": [_issue_dict(issue) for issue in item.issues],
            }
        )

    output: dict[str, object] = {
        "diagrams": diagrams,
        "summary": {
            "files_scanned": result.files_scanned,
            "diagrams": len(result.diagrams),
            "rules_evaluated": result.rules_evaluated,
            "errors": result.errors,
            "warnings": result.warnings,
            "info": result.infos,
            "unreadable_files": result.unreadable_files,
            "elapsed_ms": result.elapsed_ms,
        },
    }
    return json.dumps(output, indent=2)


def _escape_github(value: str, *, prop: bool = False) -> str:
    value = value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
    if prop:
        value = value.replace(":", "%3A").replace(",", "%2C")
    return value


def format_github(result: LintResult) -> str:
    """GitHub Actions workflow commands, one annotation per issue."""
    commands = {"error": "error", "warning": "warning", "info": "notice"}
    lines: list[str] = []
    for issue in result.issues:
        text = issue.message
        if issue.suggestion:
            text = f"{text}\n\n{issue.suggestion}"
        lines.append(
            f"::{commands[issue.severity]} "
            f"file={_escape_github(_display_path(issue.file_path), prop=True)},"
            f"line={issue.line},title={_escape_github(issue.rule, prop=True)}"
            f"::{_escape_github(text)}"
        )
    return "\n".join(lines)


def format_porcelain(result: LintResult) -> str:
    """One line per issue: ``file:line:severity:rule:message``.

    Returns an empty string when there are no issues.
    """
    return "\n".join(
        f"{issue.file_path}:{issue.line}:{issue.severity}:{issue.rule}:{issue.message}"
        for issue in result.issues
    )


def _by_file(result: LintResult) -> dict[str, list[DiagramResult]]:
    grouped: dict[str, list[DiagramResult]] = {}
    for item in result.diagrams:
        grouped.setdefault(item.diagram.file_path, []).append(item)
    return grouped


def _markdown_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def format_markdown(result: LintResult) -> str:
    """A Markdown report: summary, an issue table per file, then per-diagram metrics."""
    total = len(result.issues)
    lines = [
        "# Mermaid Diagram Analysis Report",
        "",
        "## Summary",
        "",
        f"- **Files Analyzed**: {result.files_scanned}",
        f"- **Diagrams Found**: {len(result.diagrams)}",
        f"- **Total Issues**: {total}",
        f"  - Errors: {result.errors}",
        f"  - Warnings: {result.warnings}",
        f"  - Info: {result.infos}",
        f"- **Analysis Duration**: {result.elapsed_ms:.0f}ms",
        "",
        "## Issues Found",
        "",
    ]
    grouped = _by_file(result)
    if not total:
        lines += ["No issues found.", ""]
    for file_path, items in grouped.items():
        issues = [issue for item in items for issue in item.issues]
        if not issues:
            continue
        lines += [
            f"### {_display_path(file_path)}",
            "",
            "| Line | Severity | Rule | Message |",
            "|------|----------|------|---------|",
        ]
        lines += [
            f"| {issue.line} | {issue.severity} | {issue.rule} | {_markdown_cell(issue.message)} |"
            for issue in issues
        ]
        lines.append("")

    lines += ["## Diagram Metrics", ""]
    for file_path, items in grouped.items():
        lines += [f"### {_display_path(file_path)}", ""]
        for item in items:
            metrics = item.metrics
            lines += [
                f"**Diagram at line {item.diagram.start_line}**",
                "",
                "| Metric | Value |",
                "|--------|-------|",
                f"| Nodes | {metrics.node_count} |",
                f"| Edges | {metrics.edge_count} |",
                f"| Density | {metrics.density:.3f} |",
                f"| Max Branch Width | {metrics.max_branch_width} |",
                f"| Average Degree | {metrics.average_degree:.2f} |",
                "",
            ]
    return "\n".join(lines)


def format_junit(result: LintResult) -> str:
    """JUnit XML for CI: one testsuite per file, one testcase per diagram.

    Error issues become ``<failure>`` elements; warnings and info notes go to
    the testcase's ``<system-out>``.
    """
    seconds = f"{result.elapsed_ms / 1000:.3f}"
    root = ET.Element(
        "testsuites",
        name="mermaid-sonar",
        tests=str(len(result.diagrams)),
        failures=str(result.errors),
        time=seconds,
    )
    for file_path, items in _by_file(result).items():
        display = _display_path(file_path)
        suite = ET.SubElement(
            root,
            "testsuite",
            name=display,
            tests=str(len(items)),
            failures=str(sum(issue.severity == "error" for item in items for issue in item.issues)),
        )
        for item in items:
            case = ET.SubElement(
                suite,
                "testcase",
                name=f"Diagram at line {item.diagram.start_line}",
                classname=Path(file_path).stem,
                time="0",
            )
            notes: list[str] = []
            for issue in item.issues:
                if issue.severity != "error":
                    notes.append(f"{issue.severity}: {issue.rule}: {issue.message}")
                    continue
                failure = ET.SubElement(case, "failure", message=issue.message, type=issue.rule)
                failure.text = f"{issue.rule}: {issue.message}"
                if issue.suggestion:
                    failure.text += f"\nSuggestion: {issue.suggestion}"
            if notes:
                ET.SubElement(case, "system-out").text = "\n".join(notes)

    ET.indent(root)
    body = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}'
