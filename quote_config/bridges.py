"""
Config -> Kernel Bridges.

Convert ``QuoteConfig`` values into kernel inputs.  They live here because
the kernel must never import quote_config.

Usage:
    from quote_config import get_active_config
    from quote_config.bridges import build_quote_settings, init_engine

    config = get_active_config()
    init_engine(config)
    settings = build_quote_settings(config)
"""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine

from quote_config.schema import QuoteConfig
from quote_kernel.db.engine import init_engine_from_url
from quote_kernel.domain.settings import QuoteSettings


def build_quote_settings(config: QuoteConfig) -> QuoteSettings:
    """QuoteSettings from the ``quotes`` section."""
    return QuoteSettings(
        default_validity_days=config.quotes.default_validity_days,
        expiring_soon_days=config.quotes.expiring_soon_days,
        quote_number_prefix=config.quotes.quote_number_prefix,
        quote_number_width=config.quotes.quote_number_width,
    )


def log_level(config: QuoteConfig) -> int:
    return logging.getLevelNamesMapping()[config.logging.level]


def init_engine(config: QuoteConfig, database_url: str | None = None) -> Engine:
    """Initialise the kernel engine from the ``database`` section."""
    db = config.database
    return init_engine_from_url(
        database_url or db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
        log_level=log_level(config),
    )
