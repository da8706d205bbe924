"""
quote_config -- single public entrypoint for quote configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains
    configuration.  It loads ``defaults.yaml``, overlays an optional file,
    validates the result and returns a frozen ``QuoteConfig``.

Architecture position:
    Configuration.  Sits above ``quote_kernel``; the kernel never imports
    this package.  ``quote_config.bridges`` converts the result into
    kernel inputs (QuoteSettings, engine initialisation).

Failure modes:
    - ``FileNotFoundError`` -- override path does not exist.
    - ``ValueError`` / ``KeyError`` -- schema violations.

Every successful call emits a ``quote_config_loaded`` log record with the
config id, version and checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from quote_config.loader import load_config
from quote_config.schema import QuoteConfig

_logger = logging.getLogger("quote_kernel.config")

__all__ = ["QuoteConfig", "get_active_config"]


def get_active_config(path: Path | str | None = None) -> QuoteConfig:
    """
    The ONLY public configuration entrypoint.

    Args:
        path: Optional YAML file deep-merged over the packaged defaults.

    Returns:
        The validated, frozen configuration.
    """
    config = load_config(Path(path) if path is not None else None)
    _logger.info(
        "quote_config_loaded",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source": str(path) if path is not None else "defaults",
        },
    )
    return config
