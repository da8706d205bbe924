"""
Kernel-side quote settings.

The kernel never reads configuration files; ``quote_config.bridges``
builds a ``QuoteSettings`` from the active configuration and callers pass
it to the services.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class QuoteSettings:
    """Tunable quote behaviour."""

    default_validity_days: int = 30
    expiring_soon_days: int = 7
    quote_number_prefix: str = "Q"
    quote_number_width: int = 6

    def __post_init__(self) -> None:
        if self.default_validity_days < 1:
            raise ValueError("default_validity_days must be at least 1")
        if self.expiring_soon_days < 0:
            raise ValueError("expiring_soon_days must not be negative")
        if not self.quote_number_prefix:
            raise ValueError("quote_number_prefix must not be empty")

    def format_quote_number(self, sequence_value: int) -> str:
        return f"{self.quote_number_prefix}-{sequence_value:0{self.quote_number_width}d}"


DEFAULT_SETTINGS = QuoteSettings()
