"""
Outbound hooks fired after a quote is sent.

The kernel never delivers mail or renders documents itself.  The outer
application passes implementations of these protocols to
QuoteLifecycleService; they run after the transition is committed and a
failure in them is logged, never raised to the caller.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from quote_kernel.domain.dtos import QuoteDTO


@runtime_checkable
class QuoteNotifier(Protocol):
    """Tells the client a quote is waiting for them."""

    def quote_sent(self, quote: QuoteDTO) -> None: ...


@runtime_checkable
class QuoteDocumentGenerator(Protocol):
    """Produces the client-facing document (PDF) of a quote."""

    def generate(self, quote: QuoteDTO) -> None: ...


class NullQuoteNotifier:
    """Default notifier: does nothing."""

    def quote_sent(self, quote: QuoteDTO) -> None:
        return None


class NullQuoteDocumentGenerator:
    """Default document generator: does nothing."""

    def generate(self, quote: QuoteDTO) -> None:
        return None
