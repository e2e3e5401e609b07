"""Tests for mermaid_sonar.linter: orchestration, exit codes and formatters."""

from __future__ import annotations

import io
import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from rich.console import Console

from mermaid_sonar.config import DEFAULT_CONFIG, merge_config
from mermaid_sonar.linter import (
    DiagramResult,
    LintError,
    LintResult,
    exit_code,
    format_github,
    format_json,
    format_junit,
    format_markdown,
    format_porcelain,
    lint,
    lint_files,
    render_rich,
)
from mermaid_sonar.rules import Issue

if TYPE_CHECKING:
    from collections.abc import Callable

    from mermaid_sonar.analysis.metrics import Metrics
    from mermaid_sonar.diagram import Diagram

CLEAN = "```mermaid\nflowchart TD\n  A[Start] --> B[Finish]\n```\n"
BROKEN = "# Broken\n\n```mermaid\nflowchart TD\n  A -> B\n```\n"
RESERVED = "```mermaid\nflowchart TD\n  click --> B\n```\n"


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    """A docs directory with one clean, one broken and one warning-only file."""
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "clean.md").write_text(CLEAN)
    (docs / "broken.md").write_text(BROKEN)
    (docs / "reserved.md").write_text(RESERVED)
    return docs


def _rules(result: LintResult) -> list[str]:
    return [issue.rule for issue in result.issues]


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


class TestLint:
    def test_lint_directory(self, project: Path) -> None:
        result = lint([str(project)])
        assert result.files_scanned == 3
        assert len(result.diagrams) == 3
        assert result.rules_evaluated == 13
        assert _rules(result) == ["syntax-validation", "reserved-words"]
        assert result.errors == 1
        assert result.warnings == 1
        assert result.infos == 0

    def test_issue_locations(self, project: Path) -> None:
        result = lint([str(project / "broken.md")])
        (issue,) = result.issues
        assert issue.file_path == str((project / "broken.md").resolve())
        assert issue.line == 4
        assert issue.message.startswith("Syntax error: line 5: invalid arrow")

    def test_no_files(self, tmp_path: Path) -> None:
        with pytest.raises(LintError, match="No Markdown or Mermaid files found"):
            lint([str(tmp_path / "nothing")])

    def test_disabled_rules_are_not_counted(self, project: Path) -> None:
        config = merge_config(DEFAULT_CONFIG, {"rules": {"reserved-words": False}})
        result = lint([str(project)], config=config)
        assert result.rules_evaluated == 12
        assert _rules(result) == ["syntax-validation"]

    def test_unreadable_file_is_skipped(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        good = tmp_path / "good.md"
        good.write_text(CLEAN)
        bad = tmp_path / "bad.md"
        bad.write_bytes(b"\xff\xfe not utf-8 \x80")
        with caplog.at_level(logging.WARNING, logger="mermaid_sonar.linter"):
            result = lint_files([bad, good])
        assert result.files_scanned == 1
        assert result.unreadable_files == [str(bad)]
        assert len(result.diagrams) == 1
        assert "Cannot read" in caplog.text

    def test_metrics_kept_per_diagram(self, project: Path) -> None:
        result = lint([str(project / "clean.md")])
        (item,) = result.diagrams
        assert item.metrics.node_count == 2
        assert item.issues == ()


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class TestExitCode:
    def test_clean(self, project: Path) -> None:
        assert exit_code(lint([str(project / "clean.md")])) == 0

    def test_errors(self, project: Path) -> None:
        assert exit_code(lint([str(project / "broken.md")])) == 1

    def test_warnings(self, project: Path) -> None:
        result = lint([str(project / "reserved.md")])
        assert exit_code(result) == 0
        assert exit_code(result, strict=True) == 1
        assert exit_code(result, max_warnings=0) == 1
        assert exit_code(result, max_warnings=1) == 0

    def test_empty_result(self) -> None:
        assert exit_code(LintResult(), strict=True, max_warnings=0) == 0


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class TestFormatters:
    def test_json(self, project: Path) -> None:
        data = json.loads(format_json(lint([str(project)])))
        assert data["summary"]["errors"] == 1
        assert data["summary"]["warnings"] == 1
        assert data["summary"]["files_scanned"] == 3
        assert data["summary"]["diagrams"] == 3
        broken = next(d for d in data["diagrams"] if d["file_path"].endswith("broken.md"))
        assert broken["line"] == 4
        assert broken["metrics"]["node_count"] == 2
        assert broken["issues"][0]["rule"] == "syntax-validation"
        assert broken["issues"][0]["suggestion"]

    def test_github(self, project: Path) -> None:
        output = format_github(lint([str(project)]))
        lines = output.splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("::error file=")
        assert ",line=4,title=syntax-validation::Syntax error" in lines[0]
        assert lines[1].startswith("::warning file=")
        assert "%0A" in lines[1]

    def test_github_notice_for_info(self, tmp_path: Path) -> None:
        nodes = "\n".join(f"  N{i}[Node number {i}]" for i in range(10))
        (tmp_path / "wide.md").write_text(f"```mermaid\nflowchart TD\n{nodes}\n```\n")
        config = merge_config(DEFAULT_CONFIG, {"viewport": {"maxWidth": 2000}})
        output = format_github(lint([str(tmp_path)], config=config))
        assert "::notice " in output

    def test_porcelain(self, project: Path) -> None:
        lines = format_porcelain(lint([str(project)])).splitlines()
        assert len(lines) == 2
        path, line, severity, rule, message = lines[0].split(":", 4)
        assert path.endswith("broken.md")
        assert (line, severity, rule) == ("4", "error", "syntax-validation")
        assert message.startswith("Syntax error")

    def test_porcelain_empty(self, project: Path) -> None:
        assert format_porcelain(lint([str(project / "clean.md")])) == ""

    def test_rich(self, project: Path) -> None:
        buffer = io.StringIO()
        render_rich(lint([str(project)]), Console(file=buffer, width=200, no_color=True))
        output = buffer.getvalue()
        assert "broken.md" in output
        assert "syntax-validation" in output
        assert "1 error(s), 1 warning(s), 0 info" in output

    def test_rich_clean(self, project: Path) -> None:
        buffer = io.StringIO()
        render_rich(lint([str(project / "clean.md")]), Console(file=buffer, width=200))
        assert "No issues found" in buffer.getvalue()

    def test_markdown(self, project: Path) -> None:
        output = format_markdown(lint([str(project)]))
        assert output.startswith("# Mermaid Diagram Analysis Report")
        assert "- **Files Analyzed**: 3" in output
        assert "  - Errors: 1" in output
        assert "  - Warnings: 1" in output
        assert "| 4 | error | syntax-validation | Syntax error" in output
        assert "| 2 | warning | reserved-words |" in output
        assert output.count("**Diagram at line") == 3
        assert "| Average Degree | 1.00 |" in output

    def test_markdown_clean(self, project: Path) -> None:
        output = format_markdown(lint([str(project / "clean.md")]))
        assert "No issues found." in output
        assert "## Diagram Metrics" in output

    def test_markdown_escapes_table_cells(
        self, make_diagram: Callable[..., Diagram], make_metrics: Callable[..., Metrics]
    ) -> None:
        diagram = make_diagram([("A", "B")])
        issue = Issue(
            rule="max-edges",
            severity="error",
            message="a | b\nc",
            file_path=diagram.file_path,
            line=3,
        )
        result = LintResult(
            diagrams=[DiagramResult(diagram=diagram, metrics=make_metrics(), issues=(issue,))]
        )
        assert "| 3 | error | max-edges | a \\| b c |" in format_markdown(result)

    def test_junit(self, project: Path) -> None:
        output = format_junit(lint([str(project)]))
        assert output.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        root = ET.fromstring(output.encode("utf-8"))
        assert root.tag == "testsuites"
        assert (root.get("name"), root.get("tests"), root.get("failures")) == (
            "mermaid-sonar",
            "3",
            "1",
        )
        suites = {Path(suite.get("name", "")).name: suite for suite in root.iter("testsuite")}
        assert set(suites) == {"broken.md", "clean.md", "reserved.md"}

        (broken,) = suites["broken.md"].iter("testcase")
        assert broken.get("name") == "Diagram at line 4"
        assert broken.get("classname") == "broken"
        failure = broken.find("failure")
        assert failure is not None
        assert failure.get("type") == "syntax-validation"
        assert failure.text is not None
        assert failure.text.startswith("syntax-validation: Syntax error")
        assert "\nSuggestion: " in failure.text

        (reserved,) = suites["reserved.md"].iter("testcase")
        assert reserved.find("failure") is None
        out = reserved.find("system-out")
        assert out is not None and out.text is not None
        assert out.text.startswith("warning: reserved-words: ")

        (clean,) = suites["clean.md"].iter("testcase")
        assert list(clean) == []
