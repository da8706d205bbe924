"""
Module: quote_kernel.selectors.analytics_selector
Responsibility: Quote reporting figures -- conversion rate, quotes expiring
    soon and the per-tenant / per-client statistics panel.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Read-only.  Lapsed quotes are counted as expired here but their stored
      status is never touched.
    - conversion_rate = accepted / (sent + viewed + accepted + rejected) * 100,
      rounded half-up to 2 places, 0 when nothing was dispatched.  It counts
      stored statuses, so a sent quote that later lapsed still counts as sent.
    - expiring_soon covers non-terminal quotes with
      today <= valid_until <= today + within_days.
    - Money sums are Decimal, added in Python (SQLite aggregates in float).
"""

from collections import Counter
from datetime import timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from quote_kernel.db.types import HUNDRED, ZERO, round_money
from quote_kernel.domain.clock import Clock
from quote_kernel.domain.dtos import QuoteDTO, QuoteStatistics
from quote_kernel.domain.lifecycle import (
    DISPATCHED_QUOTE_STATUSES,
    QuoteStatus,
    effective_status,
)
from quote_kernel.domain.settings import DEFAULT_SETTINGS, QuoteSettings
from quote_kernel.exceptions import ValidationError
from quote_kernel.models.quote import QuoteModel
from quote_kernel.selectors.base import BaseSelector
from quote_kernel.selectors.quote_selector import OPEN_STATUS_VALUES


def _rate(accepted: int, dispatched: int) -> Decimal:
    if dispatched == 0:
        return round_money(ZERO)
    return round_money(Decimal(accepted) * HUNDRED / Decimal(dispatched))


class AnalyticsSelector(BaseSelector[QuoteModel]):
    """
    Quote analytics for one tenant, optionally narrowed to one client.

    Usage:
        analytics = AnalyticsSelector(session, clock)
        analytics.conversion_rate(tenant_id)          # Decimal("33.33")
        analytics.expiring_soon(tenant_id, within_days=7)
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: QuoteSettings | None = None,
    ):
        super().__init__(session, clock)
        self._settings = settings or DEFAULT_SETTINGS

    def _scoped(self, stmt: Select, tenant_id: UUID, client_id: UUID | None) -> Select:
        stmt = stmt.where(QuoteModel.tenant_id == tenant_id)
        if client_id is not None:
            stmt = stmt.where(QuoteModel.client_id == client_id)
        return stmt

    def stored_status_counts(
        self, tenant_id: UUID, client_id: UUID | None = None,
    ) -> dict[QuoteStatus, int]:
        """Row counts per stored status."""
        stmt = self._scoped(
            select(QuoteModel.status, func.count(QuoteModel.id)),
            tenant_id,
            client_id,
        ).group_by(QuoteModel.status)
        return {
            QuoteStatus(status): count
            for status, count in self.session.execute(stmt).all()
        }

    def conversion_rate(self, tenant_id: UUID, client_id: UUID | None = None) -> Decimal:
        """Accepted share of dispatched quotes, as a percentage."""
        counts = self.stored_status_counts(tenant_id, client_id)
        dispatched = sum(counts.get(s, 0) for s in DISPATCHED_QUOTE_STATUSES)
        return _rate(counts.get(QuoteStatus.ACCEPTED, 0), dispatched)

    def _expiring_stmt(
        self, tenant_id: UUID, client_id: UUID | None, within_days: int | None,
    ) -> Select:
        days = self._settings.expiring_soon_days if within_days is None else within_days
        if days < 0:
            raise ValidationError("within_days", "must not be negative")
        today = self.clock.today()
        return self._scoped(select(QuoteModel), tenant_id, client_id).where(
            QuoteModel.status.in_(OPEN_STATUS_VALUES),
            QuoteModel.valid_until >= today,
            QuoteModel.valid_until <= today + timedelta(days=days),
        )

    def expiring_soon(
        self,
        tenant_id: UUID,
        within_days: int | None = None,
        client_id: UUID | None = None,
    ) -> list[QuoteDTO]:
        """Open quotes whose validity ends within ``within_days``, soonest first."""
        stmt = self._expiring_stmt(tenant_id, client_id, within_days).order_by(
            QuoteModel.valid_until.asc(), QuoteModel.quote_number.asc(),
        )
        today = self.clock.today()
        return [q.to_dto(today) for q in self.session.execute(stmt).scalars().all()]

    def statistics(self, tenant_id: UUID, client_id: UUID | None = None) -> QuoteStatistics:
        """Counts per effective status plus value totals and conversion rate."""
        today = self.clock.today()
        horizon = today + timedelta(days=self._settings.expiring_soon_days)
        rows = self.session.execute(
            self._scoped(
                select(QuoteModel.status, QuoteModel.valid_until, QuoteModel.final_amount),
                tenant_id,
                client_id,
            )
        ).all()

        by_status: Counter[QuoteStatus] = Counter()
        stored: Counter[QuoteStatus] = Counter()
        expiring = 0
        total_value = ZERO
        accepted_value = ZERO
        for status_value, valid_until, final_amount in rows:
            status = QuoteStatus(status_value)
            current = effective_status(status, valid_until, today)
            stored[status] += 1
            by_status[current] += 1
            total_value += final_amount
            if status == QuoteStatus.ACCEPTED:
                accepted_value += final_amount
            if current.value in OPEN_STATUS_VALUES and today <= valid_until <= horizon:
                expiring += 1

        dispatched = sum(stored[s] for s in DISPATCHED_QUOTE_STATUSES)
        return QuoteStatistics(
            total=len(rows),
            by_status={s: by_status.get(s, 0) for s in QuoteStatus},
            expiring_soon=expiring,
            total_value=round_money(total_value),
            accepted_value=round_money(accepted_value),
            conversion_rate=_rate(stored[QuoteStatus.ACCEPTED], dispatched),
        )
