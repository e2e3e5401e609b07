"""Configuration: defaults, merging of user overrides, and file discovery."""

from mermaid_sonar.config.defaults import DEFAULT_CONFIG, LintConfig
from mermaid_sonar.config.loader import ConfigError, find_config_file, load_config
from mermaid_sonar.config.merge import merge_config

__all__ = [
    "DEFAULT_CONFIG",
    "ConfigError",
    "LintConfig",
    "find_config_file",
    "load_config",
    "merge_config",
]
