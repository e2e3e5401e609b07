"""Discover and read user configuration files.

Search places, checked in each directory from the start directory upward:
``.sonarrc.json``, ``.sonarrc.yml``, ``.sonarrc.yaml``, ``pyproject.toml``
(``[tool.mermaid-sonar]``) and ``package.json`` (``"mermaid-sonar"`` field).
Manifests only count when they contain the section.  The first hit wins.
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any

import yaml

from mermaid_sonar.config.defaults import DEFAULT_CONFIG, LintConfig
from mermaid_sonar.config.merge import merge_config

logger = logging.getLogger(__name__)

SEARCH_PLACES: tuple[str, ...] = (
    ".sonarrc.json",
    ".sonarrc.yml",
    ".sonarrc.yaml",
    "pyproject.toml",
    "package.json",
)
SECTION = "mermaid-sonar"


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or parsed."""


def _parse(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if path.name == "pyproject.toml" or suffix == ".toml":
        data = tomllib.loads(text)
        tool = data.get("tool", {})
        return tool.get(SECTION) if isinstance(tool, dict) else None
    if path.name == "package.json":
        data = json.loads(text)
        return data.get(SECTION) if isinstance(data, dict) else None
    if suffix in (".yml", ".yaml"):
        return yaml.safe_load(text)
    return json.loads(text)


def read_config_file(path: Path) -> dict[str, Any] | None:
    """Read the mermaid-sonar settings stored in *path*.

    Returns ``None`` when a manifest file has no ``mermaid-sonar`` section.
    Raises :class:`ConfigError` on I/O or syntax errors, or when the
    settings are not a mapping.
    """
    try:
        data = _parse(path)
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read config file {path}: {exc}"
        raise ConfigError(msg) from exc
    except (json.JSONDecodeError, yaml.YAMLError, tomllib.TOMLDecodeError) as exc:
        msg = f"Malformed config file {path}: {exc}"
        raise ConfigError(msg) from exc

    if data is None:
        if path.name in ("pyproject.toml", "package.json"):
            return None
        return {}
    if not isinstance(data, dict):
        msg = f"Config file {path} must contain a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    return data


def _has_section(path: Path) -> bool:
    try:
        return read_config_file(path) is not None
    except ConfigError:
        # A broken manifest is still the config source for its directory.
        return True


def find_config_file(start: Path) -> Path | None:
    """Return the first config file found from *start* upward, or ``None``."""
    start = start.resolve()
    if start.is_file():
        start = start.parent
    for directory in (start, *start.parents):
        for name in SEARCH_PLACES:
            candidate = directory / name
            if not candidate.is_file():
                continue
            if name in ("pyproject.toml", "package.json") and not _has_section(candidate):
                continue
            return candidate
    return None


def load_config(
    search_from: Path | None = None,
    config_path: Path | None = None,
    *,
    overrides: dict[str, Any] | None = None,
) -> LintConfig:
    """Load the effective lint configuration.

    An explicit *config_path* must be readable (:class:`ConfigError`
    otherwise).  A discovered file that is malformed is logged and the
    defaults are used instead.  *overrides* (e.g. viewport limits from the
    command line) are merged last; their ``viewport`` keys are layered over
    the file's ``viewport`` section.
    """
    user: dict[str, Any] | None = None
    if config_path is not None:
        if not config_path.is_file():
            msg = f"Config file not found: {config_path}"
            raise ConfigError(msg)
        user = read_config_file(config_path) or {}
        logger.debug("Using config file %s", config_path)
    else:
        found = find_config_file(search_from or Path.cwd())
        if found is not None:
            try:
                user = read_config_file(found)
            except ConfigError as exc:
                logger.warning("%s; using default configuration", exc)
            else:
                logger.debug("Using config file %s", found)

    config = merge_config(DEFAULT_CONFIG, user) if user else DEFAULT_CONFIG
    if overrides:
        config = merge_config(config, _layer_viewport(user, overrides))
    return config


def _layer_viewport(
    user: dict[str, Any] | None, overrides: dict[str, Any]
) -> dict[str, Any]:
    """Resolve the override viewport on top of the file's viewport section.

    Keys given in *overrides* replace the file's keys, the rest are kept, so
    a profile chosen on the command line still yields to a ``maxWidth`` set
    in the file, and user-defined ``profiles`` stay available.
    """
    viewport = overrides.get("viewport")
    file_viewport = (user or {}).get("viewport")
    if not isinstance(viewport, dict) or not isinstance(file_viewport, dict):
        return overrides
    return {**overrides, "viewport": {**file_viewport, **viewport}}
