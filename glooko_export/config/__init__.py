"""Configuration loading for the Glooko export tool."""

from .loader import ConfigError, ExportConfig, FormattingConfig, default_config, load_config

__all__ = [
    "ConfigError",
    "ExportConfig",
    "FormattingConfig",
    "default_config",
    "load_config",
]
