"""Mermaid Sonar - complexity analyzer and readability linter for Mermaid diagrams."""

__version__ = "0.4.0"
