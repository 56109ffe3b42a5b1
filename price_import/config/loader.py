from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..excel.reader import DEFAULT_MAX_FILE_BYTES, DEFAULT_MAX_ROWS

"""Config loader for the price-list importer.

Responsibilities:
- Load YAML config (default ``config/import.yml``)
- Validate against ``config_schema.json`` shipped with the package
- Apply defaults for every optional key
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")

DEFAULT_EXTENSIONS = ("xlsx", "xls", "html", "htm")
DEFAULT_PREVIEW_ROWS = 20
DEFAULT_LOW_CONFIDENCE = 0.5


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ImportConfig:
    source_directory: str
    file_extensions: tuple[str, ...] = field(default=DEFAULT_EXTENSIONS)
    max_rows: int = DEFAULT_MAX_ROWS
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    preview_rows: int = DEFAULT_PREVIEW_ROWS
    low_confidence_threshold: float = DEFAULT_LOW_CONFIDENCE  # WARN below this score


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or not valid JSON, or the data
            violates the schema (missing keys, wrong types, unknown keys).
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


def config_from_dict(data: dict[str, Any]) -> ImportConfig:
    _validate_config_schema(data)
    return ImportConfig(
        source_directory=data["source_directory"],
        file_extensions=tuple(e.lower() for e in data.get("file_extensions", DEFAULT_EXTENSIONS)),
        max_rows=data.get("max_rows", DEFAULT_MAX_ROWS),
        max_file_bytes=data.get("max_file_bytes", DEFAULT_MAX_FILE_BYTES),
        preview_rows=data.get("preview_rows", DEFAULT_PREVIEW_ROWS),
        low_confidence_threshold=float(data.get("low_confidence_threshold", DEFAULT_LOW_CONFIDENCE)),
    )


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    return config_from_dict(data)
