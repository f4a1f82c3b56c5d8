from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..errors import RosterImportError

"""Config loader.

Responsibilities:
- Load the YAML import config (default config/import.yml)
- Validate it against config_schema.json (shipped next to this module)
- Apply defaults for every optional key
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")

DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(RosterImportError):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    students_table: str = "students"
    classes_table: str = "classes"
    chunk_size: int = 100
    header_scan_rows: int = 5
    prefer_sheet_name: bool | None = None  # None: sheet name first for workbooks only
    default_phone: str = "0000000000"
    synonyms_file: str | None = None
    classes: list[dict[str, Any]] = field(default_factory=list)  # offline class registry
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails validation (wrong types, unknown keys, ...).
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


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    defaults = ImportConfig()
    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    synonyms_file = data.get("synonyms_file")
    if synonyms_file:
        # relative paths are relative to the config file
        synonyms_path = Path(synonyms_file)
        if not synonyms_path.is_absolute():
            synonyms_path = path.parent / synonyms_path
        synonyms_file = str(synonyms_path)
    return ImportConfig(
        students_table=data.get("students_table", defaults.students_table),
        classes_table=data.get("classes_table", defaults.classes_table),
        chunk_size=data.get("chunk_size", defaults.chunk_size),
        header_scan_rows=data.get("header_scan_rows", defaults.header_scan_rows),
        prefer_sheet_name=data.get("prefer_sheet_name"),
        default_phone=data.get("default_phone", defaults.default_phone),
        synonyms_file=synonyms_file,
        classes=list(data.get("classes") or []),
        database=db,
    )
