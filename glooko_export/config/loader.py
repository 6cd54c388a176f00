from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader for the Glooko export tool.

Responsibilities:
- Load YAML config (default config/export.yml)
- Validate against the packaged JSON schema (export_schema.json)
- Apply defaults for every missing key
"""

__all__ = [
    "ConfigError",
    "FormattingConfig",
    "ExportConfig",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "default_config",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "export_schema.json"
DEFAULT_CONFIG_PATH = Path("config/export.yml")

DEFAULT_INTEGER_KEYWORDS = ("count", "number of", "serial", "id")
DEFAULT_DECIMAL_KEYWORDS = ("glucose", "insulin", "carb", "bg", "cgm", "dose", "value", "rate")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class FormattingConfig:
    """Spreadsheet formatting knobs. Defaults reproduce the stock export look."""
    integer_keywords: tuple[str, ...] = DEFAULT_INTEGER_KEYWORDS
    decimal_keywords: tuple[str, ...] = DEFAULT_DECIMAL_KEYWORDS
    min_column_width: int = 10
    summary_column_widths: tuple[int, int] = (20, 15)  # (first column, other columns)
    header_fill: str = "F3F2F1"
    header_font_color: str = "242424"


@dataclass(frozen=True)
class ExportConfig:
    output_directory: str = "."
    output_basename: str = "glooko_export"
    logs_directory: str = "./logs"
    missing_source_policy: str = "skip"  # skip | fail
    formatting: FormattingConfig = field(default_factory=FormattingConfig)

    @property
    def fail_on_missing_source(self) -> bool:
        return self.missing_source_policy == "fail"


def default_config() -> ExportConfig:
    return ExportConfig()


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing/invalid, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_formatting(raw: dict[str, Any]) -> FormattingConfig:
    base = FormattingConfig()
    widths = raw.get("summary_column_widths")
    return FormattingConfig(
        integer_keywords=tuple(k.lower() for k in raw.get("integer_keywords", base.integer_keywords)),
        decimal_keywords=tuple(k.lower() for k in raw.get("decimal_keywords", base.decimal_keywords)),
        min_column_width=raw.get("min_column_width", base.min_column_width),
        summary_column_widths=(widths[0], widths[1]) if widths else base.summary_column_widths,
        header_fill=raw.get("header_fill", base.header_fill).upper(),
        header_font_color=raw.get("header_font_color", base.header_font_color).upper(),
    )


def load_config(path: Path) -> ExportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    base = ExportConfig()
    return ExportConfig(
        output_directory=data.get("output_directory", base.output_directory),
        output_basename=data.get("output_basename", base.output_basename),
        logs_directory=data.get("logs_directory", base.logs_directory),
        missing_source_policy=data.get("missing_source_policy", base.missing_source_policy),
        formatting=_build_formatting(data.get("formatting") or {}),
    )
