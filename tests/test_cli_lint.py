"""Tests for the ``mermaid-sonar`` CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from mermaid_sonar import __version__
from mermaid_sonar.cli import main
from mermaid_sonar.rules import RULE_NAMES

if TYPE_CHECKING:
    from pathlib import Path


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _doc(tmp_path: Path, name: str, body: str) -> Path:
    path = tmp_path / name
    path.write_text(f"# {name}\n\n```mermaid\n{body}\n```\n")
    return path


@pytest.fixture()
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the CLI from an empty directory so no stray config is discovered."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# lint
# ---------------------------------------------------------------------------


class TestLintCommand:
    def test_clean_file(self, workdir: Path) -> None:
        path = _doc(workdir, "ok.md", "flowchart TD\n  A --> B")
        result = CliRunner().invoke(main, ["lint", str(path)])
        assert result.exit_code == 0, result.output
        assert result.output == ""

    def test_syntax_error_exits_one(self, workdir: Path) -> None:
        path = _doc(workdir, "bad.md", "flowchart TD\n  A -> B")
        result = CliRunner().invoke(main, ["lint", str(path)])
        assert result.exit_code == 1
        assert ":4:error:syntax-validation:Syntax error" in result.output

    def test_warnings_and_strict(self, workdir: Path) -> None:
        path = _doc(workdir, "warn.md", "flowchart TD\n  click --> B")
        runner = CliRunner()
        assert runner.invoke(main, ["lint", str(path)]).exit_code == 0
        assert runner.invoke(main, ["lint", "--strict", str(path)]).exit_code == 1
        assert runner.invoke(main, ["lint", "--max-warnings", "0", str(path)]).exit_code == 1
        assert runner.invoke(main, ["lint", "--max-warnings", "1", str(path)]).exit_code == 0

    def test_no_files_exits_two(self, workdir: Path) -> None:
        result = CliRunner().invoke(main, ["lint", str(workdir / "missing")])
        assert result.exit_code == 2
        assert "No Markdown or Mermaid files found" in result.output

    def test_missing_config_exits_two(self, workdir: Path) -> None:
        path = _doc(workdir, "ok.md", "flowchart TD\n  A --> B")
        result = CliRunner().invoke(
            main, ["lint", "--config", str(workdir / "nope.json"), str(path)]
        )
        assert result.exit_code == 2
        assert "Config file not found" in result.output

    def test_config_file_disables_rule(self, workdir: Path) -> None:
        path = _doc(workdir, "warn.md", "flowchart TD\n  click --> B")
        config = workdir / "lint.json"
        config.write_text(json.dumps({"rules": {"reserved-words": {"enabled": False}}}))
        result = CliRunner().invoke(
            main, ["lint", "--strict", "--config", str(config), str(path)]
        )
        assert result.exit_code == 0, result.output

    def test_discovered_config(self, workdir: Path) -> None:
        path = _doc(workdir, "warn.md", "flowchart TD\n  click --> B")
        (workdir / ".sonarrc.yml").write_text("reserved-words: false\n")
        result = CliRunner().invoke(main, ["lint", "--strict", str(path)])
        assert result.exit_code == 0, result.output

    def test_json_format(self, workdir: Path) -> None:
        path = _doc(workdir, "warn.md", "flowchart TD\n  click --> B")
        result = CliRunner().invoke(main, ["lint", "--format", "json", str(path)])
        data = json.loads(result.output)
        assert data["summary"]["warnings"] == 1
        assert data["diagrams"][0]["issues"][0]["rule"] == "reserved-words"

    def test_github_format(self, workdir: Path) -> None:
        path = _doc(workdir, "bad.md", "flowchart TD\n  A -> B")
        result = CliRunner().invoke(main, ["lint", "--format", "github", str(path)])
        assert result.output.startswith("::error file=bad.md,line=4,title=syntax-validation::")

    def test_rich_format(self, workdir: Path) -> None:
        path = _doc(workdir, "ok.md", "flowchart TD\n  A --> B")
        result = CliRunner().invoke(main, ["lint", "--format", "rich", str(path)])
        assert result.exit_code == 0
        assert "No issues found" in result.output

    def test_max_width(self, workdir: Path) -> None:
        path = _doc(workdir, "ok.md", "flowchart TD\n  A[Start] --> B[Finish]")
        result = CliRunner().invoke(main, ["lint", "--max-width", "100", str(path)])
        assert result.exit_code == 1
        assert "error:horizontal-width-readability" in result.output

    def test_viewport_profile(self, workdir: Path) -> None:
        path = _doc(
            workdir,
            "flow.md",
            "flowchart TD\n  A[Collect input] --> B[Validate request] --> C[Store result]",
        )
        runner = CliRunner()
        assert "horizontal-width-readability" not in runner.invoke(main, ["lint", str(path)]).output
        result = runner.invoke(main, ["lint", "--viewport-profile", "mobile", str(path)])
        assert result.exit_code == 1
        assert "error:horizontal-width-readability" in result.output

    def test_one_line_diagram_is_valid(self, workdir: Path) -> None:
        path = _doc(workdir, "short.md", "graph LR; A-->B")
        result = CliRunner().invoke(main, ["lint", str(path)])
        assert result.exit_code == 0, result.output

    def test_markdown_format(self, workdir: Path) -> None:
        path = _doc(workdir, "bad.md", "flowchart TD\n  A -> B")
        result = CliRunner().invoke(main, ["lint", "--format", "markdown", str(path)])
        assert result.exit_code == 1
        assert result.output.startswith("# Mermaid Diagram Analysis Report")
        assert "| 4 | error | syntax-validation |" in result.output

    def test_junit_format(self, workdir: Path) -> None:
        path = _doc(workdir, "bad.md", "flowchart TD\n  A -> B")
        result = CliRunner().invoke(main, ["lint", "--format", "junit", str(path)])
        assert result.exit_code == 1
        assert result.output.startswith("<?xml")
        assert '<testsuite name="bad.md" tests="1" failures="1">' in result.output

    def test_recursive(self, workdir: Path) -> None:
        nested = workdir / "docs" / "deep"
        nested.mkdir(parents=True)
        _doc(nested, "bad.md", "flowchart TD\n  A -> B")
        runner = CliRunner()
        flat = runner.invoke(main, ["lint", str(workdir / "docs")])
        assert flat.exit_code == 2
        deep = runner.invoke(main, ["lint", "-r", str(workdir / "docs")])
        assert deep.exit_code == 1

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert __version__ in result.output


# ---------------------------------------------------------------------------
# metrics / rules
# ---------------------------------------------------------------------------


class TestMetricsCommand:
    def test_json(self, workdir: Path) -> None:
        path = _doc(workdir, "flow.md", "flowchart LR\n  A --> B --> C\n  A --> C")
        result = CliRunner().invoke(main, ["metrics", "--json", str(path)])
        assert result.exit_code == 0
        data = json.loads(result.output)
        (row,) = data["diagrams"]
        assert row["line"] == 4
        assert row["direction"] == "LR"
        assert (row["nodes"], row["edges"]) == (3, 3)
        assert row["longest_chain"] == 3
        assert row["average_degree"] == 2.0

    def test_table(self, workdir: Path) -> None:
        path = _doc(workdir, "flow.md", "flowchart LR\n  A --> B")
        result = CliRunner().invoke(main, ["metrics", str(path)], env={"COLUMNS": "250"})
        assert result.exit_code == 0
        assert "flowchart" in result.output

    def test_no_diagrams(self, workdir: Path) -> None:
        path = workdir / "plain.md"
        path.write_text("# Nothing\n")
        result = CliRunner().invoke(main, ["metrics", str(path)])
        assert "No Mermaid diagrams found" in result.output


class TestRulesCommand:
    def test_json(self) -> None:
        result = CliRunner().invoke(main, ["rules", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [rule["name"] for rule in data] == list(RULE_NAMES)
        max_edges = data[1]
        assert max_edges["default_severity"] == "error"
        assert max_edges["options"] == {"threshold": 100}

    def test_table(self) -> None:
        result = CliRunner().invoke(main, ["rules"], env={"COLUMNS": "250"})
        assert result.exit_code == 0
        assert "max-edges" in result.output
