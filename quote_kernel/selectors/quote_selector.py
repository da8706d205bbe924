"""
Module: quote_kernel.selectors.quote_selector
Responsibility: Tenant-scoped reads of quotes as ``QuoteDTO``.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Every query filters on tenant_id; a quote of another tenant is
      indistinguishable from a missing one.
    - Status filters match the effective status: ``expired`` selects
      non-terminal quotes past valid_until, ``sent`` excludes them.
    - Results are newest first.

Failure modes:
    - get_quote raises QuoteNotFoundError; find_quote returns None.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import ColumnElement, and_, or_, select

from quote_kernel.domain.dtos import QuoteDTO, QuoteFilter
from quote_kernel.domain.lifecycle import TERMINAL_QUOTE_STATUSES, QuoteStatus
from quote_kernel.exceptions import QuoteNotFoundError
from quote_kernel.models.quote import QuoteModel
from quote_kernel.selectors.base import BaseSelector

# Stored statuses that can lapse into expired
OPEN_STATUS_VALUES: tuple[str, ...] = tuple(
    s.value for s in QuoteStatus if s not in TERMINAL_QUOTE_STATUSES
)


def effective_status_clause(status: QuoteStatus, today: date) -> ColumnElement[bool]:
    """SQL predicate matching quotes whose effective status is ``status``."""
    if status == QuoteStatus.EXPIRED:
        return and_(
            QuoteModel.status.in_(OPEN_STATUS_VALUES),
            QuoteModel.valid_until < today,
        )
    if status.value in OPEN_STATUS_VALUES:
        return and_(QuoteModel.status == status.value, QuoteModel.valid_until >= today)
    return QuoteModel.status == status.value


class QuoteSelector(BaseSelector[QuoteModel]):
    """Read access to quotes."""

    def find_quote(self, tenant_id: UUID, quote_id: UUID) -> QuoteDTO | None:
        quote = self.session.execute(
            select(QuoteModel)
            .where(QuoteModel.id == quote_id, QuoteModel.tenant_id == tenant_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if quote is None:
            return None
        return quote.to_dto(self.clock.today())

    def get_quote(self, tenant_id: UUID, quote_id: UUID) -> QuoteDTO:
        quote = self.find_quote(tenant_id, quote_id)
        if quote is None:
            raise QuoteNotFoundError(str(quote_id), str(tenant_id))
        return quote

    def list_quotes(
        self,
        tenant_id: UUID,
        quote_filter: QuoteFilter | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[QuoteDTO]:
        """
        List a tenant's quotes, newest first.

        ``search`` matches title or quote number, case-insensitively.
        """
        today = self.clock.today()
        quote_filter = quote_filter or QuoteFilter()

        stmt = select(QuoteModel).where(QuoteModel.tenant_id == tenant_id)
        if quote_filter.status is not None:
            stmt = stmt.where(effective_status_clause(quote_filter.status, today))
        if quote_filter.type is not None:
            stmt = stmt.where(QuoteModel.type == quote_filter.type.value)
        if quote_filter.client_id is not None:
            stmt = stmt.where(QuoteModel.client_id == quote_filter.client_id)
        if quote_filter.search:
            pattern = f"%{quote_filter.search.strip()}%"
            stmt = stmt.where(
                or_(
                    QuoteModel.title.ilike(pattern),
                    QuoteModel.quote_number.ilike(pattern),
                )
            )

        stmt = stmt.order_by(
            QuoteModel.created_at.desc(), QuoteModel.quote_number.desc(),
        ).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        quotes = self.session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalars().all()
        return [quote.to_dto(today) for quote in quotes]
