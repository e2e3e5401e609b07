"""Extractors: locate Mermaid blocks and parse them into diagrams."""

from mermaid_sonar.extractors.markdown import (
    MERMAID_SUFFIXES,
    extract_diagrams,
    extract_diagrams_from_file,
)
from mermaid_sonar.extractors.mermaid import detect_type, parse_diagram

__all__ = [
    "MERMAID_SUFFIXES",
    "detect_type",
    "extract_diagrams",
    "extract_diagrams_from_file",
    "parse_diagram",
]
