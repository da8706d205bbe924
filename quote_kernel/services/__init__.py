"""Write-side services for the quote kernel."""

from quote_kernel.services.base import BaseService
from quote_kernel.services.conversion_service import ConversionService
from quote_kernel.services.lifecycle_service import QuoteLifecycleService
from quote_kernel.services.notifications import (
    NullQuoteDocumentGenerator,
    NullQuoteNotifier,
    QuoteDocumentGenerator,
    QuoteNotifier,
)
from quote_kernel.services.quote_service import QuoteService
from quote_kernel.services.sequence_service import SequenceService
from quote_kernel.services.transition_writer import QuoteTransitionWriter

__all__ = [
    "BaseService",
    "ConversionService",
    "NullQuoteDocumentGenerator",
    "NullQuoteNotifier",
    "QuoteDocumentGenerator",
    "QuoteLifecycleService",
    "QuoteNotifier",
    "QuoteService",
    "QuoteTransitionWriter",
    "SequenceService",
]
