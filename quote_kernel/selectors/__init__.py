"""Read-only query selectors for the quote kernel."""

from quote_kernel.selectors.analytics_selector import AnalyticsSelector
from quote_kernel.selectors.base import BaseSelector
from quote_kernel.selectors.quote_selector import QuoteSelector

__all__ = [
    "AnalyticsSelector",
    "BaseSelector",
    "QuoteSelector",
]
