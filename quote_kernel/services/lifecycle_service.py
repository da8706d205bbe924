"""
QuoteLifecycleService -- the public entry point for quote transitions.

Responsibility:
    ``send``, ``mark_viewed``, ``accept`` and ``reject``.  Each call loads
    the quote within its tenant, asks the state machine for the target
    status, writes it with a compare-and-set, emits one
    ``quote_transitioned`` log record and (by default) commits.  ``accept``
    delegates to ConversionService so the project is created in the same
    unit of work.

Architecture position:
    Kernel > Services.  Owns the transaction of each operation when
    ``auto_commit=True`` (the default); with ``auto_commit=False`` it only
    flushes and the caller commits.

Invariants enforced:
    - Every status change follows QUOTE_TRANSITIONS from the effective
      status; an illegal request raises, never no-ops.
    - A rejection always carries a non-empty reason.
    - Send hooks run after the commit and never fail the operation.

Failure modes:
    - ValidationError (missing rejection reason on a quote that could be
      rejected; an illegal reject raises IllegalTransitionError first).
    - QuoteNotFoundError, IllegalTransitionError, ConcurrentTransitionError.
    - PersistenceError wrapping SQLAlchemyError.  The session is rolled
      back (auto_commit) and the quote keeps its previous status.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TypeVar
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quote_kernel.domain.clock import Clock, SystemClock
from quote_kernel.domain.dtos import ConversionResult, QuoteDTO
from quote_kernel.domain.lifecycle import QuoteAction, QuoteStatus, plan_transition
from quote_kernel.exceptions import (
    PersistenceError,
    QuoteKernelError,
    QuoteNotFoundError,
    ValidationError,
)
from quote_kernel.logging_config import LogContext, get_logger
from quote_kernel.models.quote import QuoteModel
from quote_kernel.services.conversion_service import ConversionService
from quote_kernel.services.notifications import (
    NullQuoteDocumentGenerator,
    NullQuoteNotifier,
    QuoteDocumentGenerator,
    QuoteNotifier,
)
from quote_kernel.services.transition_writer import QuoteTransitionWriter

logger = get_logger("services.lifecycle")

T = TypeVar("T")


class QuoteLifecycleService:
    """
    Quote state machine operations.

    Usage:
        lifecycle = QuoteLifecycleService(session, clock=clock)
        lifecycle.send(tenant_id, quote_id, actor_id)
        lifecycle.accept(tenant_id, quote_id, actor_id)
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        conversion: ConversionService | None = None,
        notifier: QuoteNotifier | None = None,
        document_generator: QuoteDocumentGenerator | None = None,
        auto_commit: bool = True,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._conversion = conversion or ConversionService(session, self._clock)
        self._notifier = notifier or NullQuoteNotifier()
        self._document_generator = document_generator or NullQuoteDocumentGenerator()
        self._writer = QuoteTransitionWriter(session)
        self._auto_commit = auto_commit

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def send(self, tenant_id: UUID, quote_id: UUID, actor_id: UUID) -> QuoteDTO:
        """
        draft -> sent.

        With ``auto_commit`` the notification and document hooks fire after
        the commit.  Otherwise nothing is committed yet, so the caller runs
        ``run_send_hooks(quote)`` once its own commit succeeds.
        """
        quote = self._run(
            QuoteAction.SEND, tenant_id, quote_id, actor_id,
            lambda: self._transition(QuoteAction.SEND, tenant_id, quote_id, actor_id),
        )
        if self._auto_commit:
            self.run_send_hooks(quote)
        return quote

    def mark_viewed(self, tenant_id: UUID, quote_id: UUID, actor_id: UUID) -> QuoteDTO:
        """sent -> viewed."""
        return self._run(
            QuoteAction.MARK_VIEWED, tenant_id, quote_id, actor_id,
            lambda: self._transition(QuoteAction.MARK_VIEWED, tenant_id, quote_id, actor_id),
        )

    def reject(
        self, tenant_id: UUID, quote_id: UUID, actor_id: UUID, reason: str | None = None,
    ) -> QuoteDTO:
        """
        sent / viewed -> rejected, recording ``reason``.

        The transition is checked first: a quote that cannot be rejected
        raises IllegalTransitionError whatever the reason.  A missing reason
        on a rejectable quote is a ValidationError.
        """
        cleaned = (reason or "").strip()
        return self._run(
            QuoteAction.REJECT, tenant_id, quote_id, actor_id,
            lambda: self._transition(
                QuoteAction.REJECT, tenant_id, quote_id, actor_id,
                rejection_reason=cleaned,
            ),
            reason=cleaned or None,
        )

    def accept(self, tenant_id: UUID, quote_id: UUID, actor_id: UUID) -> ConversionResult:
        """sent / viewed -> accepted, creating or linking the project."""

        def _accept() -> tuple[QuoteStatus, ConversionResult]:
            result = self._conversion.accept(tenant_id, quote_id, actor_id)
            return result.previous_status, result

        return self._run(QuoteAction.ACCEPT, tenant_id, quote_id, actor_id, _accept)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transition(
        self,
        action: QuoteAction,
        tenant_id: UUID,
        quote_id: UUID,
        actor_id: UUID,
        **values: str,
    ) -> tuple[QuoteStatus, QuoteDTO]:
        quote = self._load(tenant_id, quote_id)
        today = self._clock.today()
        previous = quote.quote_status
        target = plan_transition(str(quote.id), action, previous, quote.valid_until, today)
        if action == QuoteAction.REJECT and not values.get("rejection_reason"):
            raise ValidationError("rejection_reason", "a reason is required to reject a quote")
        self._writer.apply(
            quote,
            action,
            expected=previous,
            target=target,
            actor_id=actor_id,
            at=self._clock.now(),
            **values,
        )
        return previous, quote.to_dto(today)

    def _run(
        self,
        action: QuoteAction,
        tenant_id: UUID,
        quote_id: UUID,
        actor_id: UUID,
        operation: Callable[[], tuple[QuoteStatus, T]],
        reason: str | None = None,
    ) -> T:
        with LogContext.bind(
            correlation_id=str(uuid4()),
            tenant_id=str(tenant_id),
            actor_id=str(actor_id),
            quote_id=str(quote_id),
        ):
            t0 = time.monotonic()
            try:
                previous, result = operation()
                if self._auto_commit:
                    self._session.commit()
            except PersistenceError:
                if self._auto_commit:
                    self._session.rollback()
                logger.error(
                    "quote_transition_failed",
                    extra={"action": action.value},
                    exc_info=True,
                )
                raise
            except QuoteKernelError:
                if self._auto_commit:
                    self._session.rollback()
                logger.warning(
                    "quote_transition_refused",
                    extra={"action": action.value},
                    exc_info=True,
                )
                raise
            except SQLAlchemyError as exc:
                if self._auto_commit:
                    self._session.rollback()
                logger.error(
                    "quote_transition_failed",
                    extra={"action": action.value},
                    exc_info=True,
                )
                raise PersistenceError(action.value, str(exc)) from exc

            quote = result.quote if isinstance(result, ConversionResult) else result
            logger.info(
                "quote_transitioned",
                extra={
                    "action": action.value,
                    "from_status": previous.value,
                    "to_status": quote.status.value,
                    "reason": reason,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return result

    def run_send_hooks(self, quote: QuoteDTO) -> None:
        """Notify and generate the document for a sent quote.  Hook errors are logged."""
        hooks = (
            ("notifier", lambda: self._notifier.quote_sent(quote)),
            ("document_generator", lambda: self._document_generator.generate(quote)),
        )
        for name, hook in hooks:
            try:
                hook()
            except Exception:
                logger.warning(
                    "quote_send_hook_failed",
                    extra={"hook": name, "quote_id": str(quote.id)},
                    exc_info=True,
                )

    def _load(self, tenant_id: UUID, quote_id: UUID) -> QuoteModel:
        quote = self._session.execute(
            select(QuoteModel)
            .where(QuoteModel.id == quote_id, QuoteModel.tenant_id == tenant_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if quote is None:
            raise QuoteNotFoundError(str(quote_id), str(tenant_id))
        return quote
