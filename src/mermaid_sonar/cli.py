"""mermaid-sonar CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from mermaid_sonar import __version__

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@click.group()
@click.version_option(version=__version__, prog_name="mermaid-sonar")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """mermaid-sonar - complexity and readability linter for Mermaid diagrams."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


@main.command()
@click.argument("paths", nargs=-1, required=True)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "github", "porcelain", "markdown", "junit"]),
    default=None,
    help="Output format (default: rich if TTY, porcelain if piped).",
)
@click.option("--strict", is_flag=True, default=False, help="Exit 1 if warnings are found.")
@click.option(
    "--max-warnings",
    type=click.IntRange(min=0),
    default=None,
    help="Exit 1 if more than N warnings are found.",
)
@click.option("--recursive", "-r", is_flag=True, default=False, help="Scan directories recursively.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: search .sonarrc.*, pyproject.toml, package.json upward).",
)
@click.option("--max-width", type=click.IntRange(min=1), default=None, help="Viewport width in px.")
@click.option("--max-height", type=click.IntRange(min=1), default=None, help="Viewport height in px.")
@click.option(
    "--viewport-profile",
    default=None,
    help="Viewport profile: mkdocs, docusaurus, github, mobile, default, or one from config.",
)
def lint(
    paths: tuple[str, ...],
    *,
    fmt: str | None,
    strict: bool,
    max_warnings: int | None,
    recursive: bool,
    config_path: Path | None,
    max_width: int | None,
    max_height: int | None,
    viewport_profile: str | None,
) -> None:
    """Lint Mermaid diagrams in Markdown and .mmd files.

    PATHS may be files, directories or glob patterns.
    Exit codes: 0 = clean, 1 = errors (or warnings with --strict /
    --max-warnings), 2 = no files found or unreadable config.
    """
    from mermaid_sonar.config import ConfigError, load_config
    from mermaid_sonar.linter import (
        LintError,
        exit_code,
        format_github,
        format_json,
        format_junit,
        format_markdown,
        format_porcelain,
        render_rich,
    )
    from mermaid_sonar.linter import lint as run_lint

    viewport: dict[str, int | str] = {}
    if viewport_profile is not None:
        viewport["profile"] = viewport_profile
    if max_width is not None:
        viewport["maxWidth"] = max_width
    if max_height is not None:
        viewport["maxHeight"] = max_height

    try:
        config = load_config(
            Path.cwd(), config_path, overrides={"viewport": viewport} if viewport else None
        )
        result = run_lint(list(paths), config=config, recursive=recursive)
    except (ConfigError, LintError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    if fmt == "rich":
        from rich.console import Console

        render_rich(result, Console())
    else:
        formatters = {
            "json": format_json,
            "github": format_github,
            "porcelain": format_porcelain,
            "markdown": format_markdown,
            "junit": format_junit,
        }
        output = formatters[fmt](result)
        if output:
            click.echo(output)

    code = exit_code(result, strict=strict, max_warnings=max_warnings)
    if code:
        sys.exit(code)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "output_json", is_flag=True, help="Structured JSON output.")
def metrics(file: Path, *, output_json: bool) -> None:
    """Show structural metrics for every diagram in FILE."""
    from mermaid_sonar.analysis import analyze
    from mermaid_sonar.extractors import extract_diagrams_from_file

    try:
        diagrams = extract_diagrams_from_file(file)
    except (OSError, UnicodeDecodeError) as exc:
        click.echo(f"Error: cannot read {file}: {exc}", err=True)
        sys.exit(2)

    rows: list[dict[str, object]] = []
    for diagram in diagrams:
        m = analyze(diagram)
        rows.append(
            {
                "line": diagram.start_line,
                "type": diagram.type,
                "direction": diagram.direction,
                "nodes": m.node_count,
                "edges": m.edge_count,
                "density": round(m.density, 4),
                "average_degree": round(m.average_degree, 2),
                "cyclomatic_complexity": m.cyclomatic_complexity,
                "components": m.component_count,
                "longest_chain": m.longest_chain_length,
                "max_branch_width": m.max_branch_width,
                "estimated_width": m.estimated_width,
                "estimated_height": m.estimated_height,
            }
        )

    if output_json:
        click.echo(json.dumps({"file": str(file), "diagrams": rows}, indent=2))
        return

    if not rows:
        click.echo(f"No Mermaid diagrams found in {file}")
        return

    from rich.console import Console
    from rich.table import Table

    table = Table(title=str(file), padding=(0, 1))
    for column in rows[0]:
        table.add_column(column.replace("_", " "), justify="left" if column == "type" else "right")
    for row in rows:
        table.add_row(*("-" if value is None else str(value) for value in row.values()))
    Console().print(table)


@main.command()
@click.option("--json", "output_json", is_flag=True, help="Structured JSON output.")
def rules(*, output_json: bool) -> None:
    """List the available rules and their defaults."""
    from mermaid_sonar.rules import RULES

    if output_json:
        data = [
            {
                "name": rule.name,
                "description": rule.description,
                "default_severity": rule.default_severity,
                "options": dict(rule.options),
            }
            for rule in RULES
        ]
        click.echo(json.dumps(data, indent=2))
        return

    from rich.console import Console
    from rich.table import Table

    table = Table(title="Rules", box=None, padding=(0, 1))
    table.add_column("rule", style="cyan")
    table.add_column("severity")
    table.add_column("defaults")
    table.add_column("description")
    for rule in RULES:
        defaults = ", ".join(f"{key}={value}" for key, value in rule.options.items())
        table.add_row(rule.name, rule.default_severity, defaults or "-", rule.description)
    Console().print(table)
