"""
Module: quote_kernel.models.quote
Responsibility: ORM persistence for quotes.  Stores the driving amounts,
    the derived amounts computed from them, the stored lifecycle status and
    the optional link to the project produced by acceptance.
Architecture position: Kernel > Models.  May import from db/, domain/ and
    exceptions only.

Invariants enforced:
    - tax_amount / final_amount always equal ``compute(total, discount, rate)``
      at flush time; the only writer is ``apply_amounts``.
    - status never changes through an ORM flush.  Lifecycle transitions use a
      guarded UPDATE statement issued by QuoteLifecycleService.
    - project_id, once set, is never re-pointed or cleared.
    - rejection_reason is only present on rejected quotes.
    - quote_number is unique within a tenant.
    - ``expired`` is never written; expiry is derived from valid_until.

Failure modes:
    - ImmutabilityViolationError from the flush listeners below.
    - IntegrityError on a duplicate (tenant_id, quote_number).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    event,
    inspect,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quote_kernel.db.base import TenantScopedBase, UUIDString
from quote_kernel.db.types import Money, Rate
from quote_kernel.domain.financials import QuoteAmounts, compute
from quote_kernel.domain.lifecycle import QuoteStatus, QuoteType, effective_status
from quote_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from quote_kernel.domain.dtos import QuoteDTO
    from quote_kernel.models.client import ClientModel
    from quote_kernel.models.project import ProjectModel


_AMOUNT_FIELDS = (
    "total_amount",
    "discount_amount",
    "tax_rate",
    "tax_amount",
    "final_amount",
)


class QuoteModel(TenantScopedBase):
    """
    A priced offer to a client.

    Status is stored as its string value.  Use ``quote_status`` for the
    enum and ``to_dto(today)`` for the view with effective status.
    """

    __tablename__ = "quotes"

    __table_args__ = (
        UniqueConstraint("tenant_id", "quote_number", name="uq_quote_tenant_number"),
        CheckConstraint(
            "status IN ('draft', 'sent', 'viewed', 'accepted', 'rejected')",
            name="ck_quotes_stored_status",
        ),
        CheckConstraint(
            "type IN ('design', 'construction')",
            name="ck_quotes_valid_type",
        ),
        CheckConstraint("total_amount >= 0", name="ck_quotes_total_non_negative"),
        CheckConstraint(
            "discount_amount >= 0 AND discount_amount <= total_amount",
            name="ck_quotes_discount_range",
        ),
        CheckConstraint(
            "tax_rate >= 0 AND tax_rate <= 100",
            name="ck_quotes_tax_rate_range",
        ),
        CheckConstraint(
            "rejection_reason IS NULL OR status = 'rejected'",
            name="ck_quotes_rejection_reason_status",
        ),
        Index("idx_quote_tenant_status", "tenant_id", "status"),
        Index("idx_quote_tenant_valid_until", "tenant_id", "valid_until"),
        Index("idx_quote_tenant_client", "tenant_id", "client_id"),
    )

    client_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("clients.id"), nullable=False,
    )
    project_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("projects.id"), nullable=True,
    )

    quote_number: Mapped[str] = mapped_column(String(50), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Driving amounts
    total_amount: Mapped[Money] = mapped_column(nullable=False)
    discount_amount: Mapped[Money] = mapped_column(nullable=False)
    tax_rate: Mapped[Rate] = mapped_column(nullable=False)

    # Derived amounts
    tax_amount: Mapped[Money] = mapped_column(nullable=False)
    final_amount: Mapped[Money] = mapped_column(nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=QuoteStatus.DRAFT.value,
    )
    valid_until: Mapped[date] = mapped_column(Date, nullable=False)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    sent_at: Mapped[datetime | None] = mapped_column(nullable=True)
    viewed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    accepted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(nullable=True)

    line_items: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    terms: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    client: Mapped[ClientModel] = relationship("ClientModel", lazy="select")
    project: Mapped[ProjectModel | None] = relationship("ProjectModel", lazy="select")

    @property
    def quote_status(self) -> QuoteStatus:
        return QuoteStatus(self.status)

    @property
    def quote_type(self) -> QuoteType:
        return QuoteType(self.type)

    def apply_amounts(self, amounts: QuoteAmounts) -> None:
        """Write a full set of computed amounts."""
        self.total_amount = amounts.total_amount
        self.discount_amount = amounts.discount_amount
        self.tax_rate = amounts.tax_rate
        self.tax_amount = amounts.tax_amount
        self.final_amount = amounts.final_amount

    def effective_status(self, today: date) -> QuoteStatus:
        return effective_status(self.quote_status, self.valid_until, today)

    def to_dto(self, today: date) -> QuoteDTO:
        """Convert to a frozen view, deriving expiry against ``today``."""
        from quote_kernel.domain.dtos import QuoteDTO

        return QuoteDTO(
            id=self.id,
            tenant_id=self.tenant_id,
            client_id=self.client_id,
            project_id=self.project_id,
            quote_number=self.quote_number,
            type=self.quote_type,
            title=self.title,
            description=self.description,
            total_amount=self.total_amount,
            discount_amount=self.discount_amount,
            tax_rate=self.tax_rate,
            tax_amount=self.tax_amount,
            final_amount=self.final_amount,
            status=self.quote_status,
            effective_status=self.effective_status(today),
            valid_until=self.valid_until,
            rejection_reason=self.rejection_reason,
            created_by_id=self.created_by_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
            sent_at=self.sent_at,
            viewed_at=self.viewed_at,
            accepted_at=self.accepted_at,
            rejected_at=self.rejected_at,
            line_items=list(self.line_items or []),
            terms=dict(self.terms or {}),
        )

    def __repr__(self) -> str:
        return f"<QuoteModel {self.quote_number} [{self.status}]>"


# =============================================================================
# ORM-level invariant checks
# =============================================================================
# Guarded UPDATE statements issued by the lifecycle service bypass mapper
# events; the check constraints above cover those.
# =============================================================================


def _changed(target: QuoteModel, attribute: str) -> bool:
    return inspect(target).attrs[attribute].history.has_changes()


def _check_amounts(target: QuoteModel) -> None:
    expected = compute(target.total_amount, target.discount_amount, target.tax_rate)
    if (
        target.tax_amount != expected.tax_amount
        or target.final_amount != expected.final_amount
    ):
        raise ImmutabilityViolationError(
            entity_type="Quote",
            entity_id=str(target.id),
            reason=(
                f"derived amounts (tax={target.tax_amount}, "
                f"final={target.final_amount}) do not match computed "
                f"(tax={expected.tax_amount}, final={expected.final_amount})"
            ),
        )


def _check_rejection_reason(target: QuoteModel) -> None:
    if target.rejection_reason is not None and target.status != QuoteStatus.REJECTED.value:
        raise ImmutabilityViolationError(
            entity_type="Quote",
            entity_id=str(target.id),
            reason="rejection_reason is only allowed on rejected quotes",
        )


@event.listens_for(QuoteModel, "before_insert")
def check_quote_insert(mapper, connection, target):
    """Validate amounts, stored status and rejection reason on INSERT."""
    _check_amounts(target)
    if target.status not in (QuoteStatus.DRAFT.value, None):
        raise ImmutabilityViolationError(
            entity_type="Quote",
            entity_id=str(target.id),
            reason=f"quotes are created in draft, not '{target.status}'",
        )
    _check_rejection_reason(target)


@event.listens_for(QuoteModel, "before_update")
def check_quote_update(mapper, connection, target):
    """Refuse ORM writes that bypass the calculator or the state machine."""
    if _changed(target, "status"):
        raise ImmutabilityViolationError(
            entity_type="Quote",
            entity_id=str(target.id),
            reason="status changes only through lifecycle operations",
        )

    if any(_changed(target, name) for name in _AMOUNT_FIELDS):
        _check_amounts(target)

    if _changed(target, "project_id"):
        previous = inspect(target).attrs.project_id.history.deleted
        if previous and previous[0] is not None:
            raise ImmutabilityViolationError(
                entity_type="Quote",
                entity_id=str(target.id),
                reason="project link cannot be changed once set",
            )

    if _changed(target, "rejection_reason"):
        _check_rejection_reason(target)
