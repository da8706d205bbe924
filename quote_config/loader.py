"""
Configuration Loader (``quote_config.loader``).

Responsibility
--------------
Reads YAML files and parses them into the frozen ``quote_config.schema``
dataclasses.  Callers use ``quote_config.get_active_config()``; the
functions here are its building blocks and test tooling.

Invariants enforced
-------------------
* A file given as override is deep-merged over ``defaults.yaml``, so every
  key has a value and nothing is silently invented elsewhere.
* Bad values raise ``ValueError`` naming the offending key.
* ``compute_checksum`` is deterministic for identical merged data.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong type or range  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

import yaml

from quote_config.schema import (
    DatabaseConfig,
    LoggingConfig,
    QuoteConfig,
    QuotePolicyConfig,
)

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

_LOG_LEVELS = frozenset(logging.getLevelNamesMapping()) - {"NOTSET"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursive dict merge; ``override`` wins."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _int(section: dict[str, Any], key: str, minimum: int) -> int:
    value = section[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"{key} must be >= {minimum}, got {value}")
    return value


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    url = data["url"]
    if not isinstance(url, str) or not url.strip():
        raise ValueError("database.url must be a non-empty string")
    return DatabaseConfig(
        url=url,
        echo=bool(data.get("echo", False)),
        pool_size=_int(data, "pool_size", 1),
        max_overflow=_int(data, "max_overflow", 0),
        pool_timeout=_int(data, "pool_timeout", 1),
        pool_recycle=_int(data, "pool_recycle", -1),
    )


def parse_quotes(data: dict[str, Any]) -> QuotePolicyConfig:
    prefix = data["quote_number_prefix"]
    if not isinstance(prefix, str) or not prefix.strip():
        raise ValueError("quotes.quote_number_prefix must be a non-empty string")
    return QuotePolicyConfig(
        default_validity_days=_int(data, "default_validity_days", 1),
        expiring_soon_days=_int(data, "expiring_soon_days", 0),
        quote_number_prefix=prefix.strip(),
        quote_number_width=_int(data, "quote_number_width", 1),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    level = str(data.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {sorted(_LOG_LEVELS)}, got {level!r}")
    return LoggingConfig(level=level)


def parse_config(data: dict[str, Any]) -> QuoteConfig:
    """
    Parse a merged configuration dict.

    Raises:
        KeyError: if a required section or key is missing.
        ValueError: if a value has the wrong type or range.
    """
    return QuoteConfig(
        config_id=str(data["config_id"]),
        version=_int(data, "version", 1),
        checksum=compute_checksum(data),
        database=parse_database(data["database"]),
        quotes=parse_quotes(data["quotes"]),
        logging=parse_logging(data.get("logging", {})),
    )


def load_config(path: Path | None = None) -> QuoteConfig:
    """Defaults, optionally overlaid with the file at ``path``."""
    data = load_yaml_file(DEFAULTS_PATH)
    if path is not None:
        data = merge(data, load_yaml_file(path))
    return parse_config(data)
