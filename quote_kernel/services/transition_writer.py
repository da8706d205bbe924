"""
QuoteTransitionWriter -- the single writer of a quote's stored status.

Responsibility:
    Applies an already-planned transition with an optimistic precondition
    on the stored pre-state:

        UPDATE quotes
           SET status = :target, <action>_at = :now, updated_by_id = :actor
         WHERE id = :id AND tenant_id = :tenant AND status = :expected

    Zero affected rows means another request moved the quote first.

Architecture position:
    Kernel > Services.  Shared by QuoteLifecycleService (send, mark_viewed,
    reject) and ConversionService (accept).

Invariants enforced:
    - The target status comes from ``plan_transition``; this writer never
      decides legality on its own.
    - ``expired`` is never written.

Failure modes:
    - ConcurrentTransitionError when the stored status no longer matches
      the expected pre-state.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import update

from quote_kernel.domain.lifecycle import QuoteAction, QuoteStatus
from quote_kernel.exceptions import ConcurrentTransitionError
from quote_kernel.logging_config import get_logger
from quote_kernel.models.quote import QuoteModel
from quote_kernel.services.base import BaseService

logger = get_logger("services.transition_writer")


_TIMESTAMP_COLUMNS: dict[QuoteStatus, str] = {
    QuoteStatus.SENT: "sent_at",
    QuoteStatus.VIEWED: "viewed_at",
    QuoteStatus.ACCEPTED: "accepted_at",
    QuoteStatus.REJECTED: "rejected_at",
}


class QuoteTransitionWriter(BaseService[QuoteModel]):
    """Compare-and-set status writes.  Flush-only."""

    def apply(
        self,
        quote: QuoteModel,
        action: QuoteAction,
        expected: QuoteStatus,
        target: QuoteStatus,
        actor_id: UUID,
        at: datetime,
        **values: Any,
    ) -> None:
        """
        Move ``quote`` from ``expected`` to ``target``.

        Args:
            values: Extra columns written in the same statement
                (e.g. ``rejection_reason``).

        Postconditions:
            ``quote`` is refreshed from the database and shows ``target``.

        Raises:
            ConcurrentTransitionError: the stored status was not ``expected``.
        """
        if target == QuoteStatus.EXPIRED:
            raise ValueError("expired is derived and never stored")

        assignments: dict[str, Any] = {
            "status": target.value,
            "updated_by_id": actor_id,
            _TIMESTAMP_COLUMNS[target]: at,
        }
        assignments.update(values)

        result = self.session.execute(
            update(QuoteModel)
            .where(
                QuoteModel.id == quote.id,
                QuoteModel.tenant_id == quote.tenant_id,
                QuoteModel.status == expected.value,
            )
            .values(**assignments)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            logger.warning(
                "quote_transition_conflict",
                extra={
                    "quote_id": str(quote.id),
                    "expected_status": expected.value,
                    "action": action.value,
                },
            )
            raise ConcurrentTransitionError(str(quote.id), expected.value, action.value)

        self.session.refresh(quote)
