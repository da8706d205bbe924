"""
Pure domain layer.

Amount calculation, the quote lifecycle table, DTOs and settings, with NO
dependencies on the ORM, the database or I/O (time comes from an injected
Clock).
"""

from quote_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from quote_kernel.domain.dtos import (
    ConversionResult,
    ProjectDTO,
    QuoteAmendment,
    QuoteDraft,
    QuoteDTO,
    QuoteFilter,
    QuoteStatistics,
)
from quote_kernel.domain.financials import QuoteAmounts, compute
from quote_kernel.domain.lifecycle import (
    QUOTE_TRANSITIONS,
    TERMINAL_QUOTE_STATUSES,
    QuoteAction,
    QuoteStatus,
    QuoteType,
    can_be_accepted,
    can_be_rejected,
    can_be_sent,
    can_be_viewed,
    effective_status,
)
from quote_kernel.domain.settings import QuoteSettings

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "QuoteAmounts",
    "compute",
    "QuoteStatus",
    "QuoteType",
    "QuoteAction",
    "QUOTE_TRANSITIONS",
    "TERMINAL_QUOTE_STATUSES",
    "can_be_sent",
    "can_be_viewed",
    "can_be_accepted",
    "can_be_rejected",
    "effective_status",
    "QuoteDraft",
    "QuoteAmendment",
    "QuoteDTO",
    "ProjectDTO",
    "ConversionResult",
    "QuoteFilter",
    "QuoteStatistics",
    "QuoteSettings",
]
