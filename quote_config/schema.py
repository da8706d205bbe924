"""
Quote configuration schema.

Frozen dataclasses parsed from YAML by ``quote_config.loader``.  They carry
plain values only; ``quote_config.bridges`` turns them into kernel inputs.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DatabaseConfig:
    """Engine connection settings."""

    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800


@dataclass(frozen=True)
class QuotePolicyConfig:
    """Quote behaviour knobs."""

    default_validity_days: int = 30
    expiring_soon_days: int = 7
    quote_number_prefix: str = "Q"
    quote_number_width: int = 6


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class QuoteConfig:
    """The complete, validated configuration."""

    config_id: str
    version: int
    checksum: str
    database: DatabaseConfig
    quotes: QuotePolicyConfig
    logging: LoggingConfig
