"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Provides strictly increasing numbers for per-tenant quote numbering.
    Uses the ``sequence_counters`` table with row-level locking
    (``SELECT ... FOR UPDATE``) so concurrent quote creation within a
    tenant never hands out the same number.

Architecture position:
    Kernel > Services.  Called by QuoteService when a draft carries no
    explicit quote number.

Invariants enforced:
    - The locked counter row is the sole source of the next value.
      ``MAX(quote_number) + 1`` over the quotes table is never used.
    - The increment is only visible once the caller's transaction
      commits; a rollback returns the value.

Failure modes:
    - IntegrityError on a concurrent first use of a sequence name, handled
      with a savepoint rollback and a locked re-read.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quote_kernel.logging_config import get_logger
from quote_kernel.models.sequence import SequenceCounter
from quote_kernel.services.base import BaseService

logger = get_logger("services.sequence")


class SequenceService(BaseService[SequenceCounter]):
    """
    Named, transactional counters.

    Non-goals:
        - Does NOT call ``session.commit()``.

    Usage:
        seq = SequenceService(session)
        n = seq.next_value(SequenceService.quote_sequence(tenant_id))
    """

    QUOTE_PREFIX = "quote"

    def __init__(self, session: Session):
        super().__init__(session)

    @classmethod
    def quote_sequence(cls, tenant_id: UUID) -> str:
        """Sequence name of a tenant's quote numbers."""
        return f"{cls.QUOTE_PREFIX}:{tenant_id}"

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self.session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Lock (or create) the counter row, increment it and return the value.

        Postconditions:
            Returns an integer > 0, strictly greater than any value
            previously returned for ``sequence_name``.
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            # First use.  A savepoint keeps a lost creation race from
            # rolling back the caller's work.
            savepoint = self.session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self.session.add(counter)
                self.session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self.session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value without incrementing, or None for an unused name."""
        counter = self.session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None
