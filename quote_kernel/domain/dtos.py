"""
Quote kernel DTOs (``quote_kernel.domain.dtos``).

Responsibility
--------------
Frozen dataclasses crossing the kernel boundary: creation and amendment
payloads coming in, quote / project views and statistics going out.

Architecture position
---------------------
**Kernel domain layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* Payload types carry no ``status``, ``project_id`` (on amendment),
  ``tax_amount`` or ``final_amount`` field: those are never caller input.
* All monetary fields are ``Decimal`` -- NEVER ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from quote_kernel.domain.lifecycle import QuoteStatus, QuoteType


@dataclass(frozen=True)
class QuoteDraft:
    """Validated creation payload supplied by the web/API layer."""

    client_id: UUID
    type: QuoteType | str
    title: str
    total_amount: Decimal | int | str
    tax_rate: Decimal | int | str = Decimal("0")
    discount_amount: Decimal | int | str = Decimal("0")
    valid_until: date | None = None
    description: str | None = None
    project_id: UUID | None = None
    quote_number: str | None = None
    line_items: list[dict[str, Any]] | None = None
    terms: dict[str, Any] | None = None


@dataclass(frozen=True)
class QuoteAmendment:
    """Changes to a draft quote.  ``None`` leaves a field unchanged."""

    type: QuoteType | str | None = None
    title: str | None = None
    description: str | None = None
    total_amount: Decimal | int | str | None = None
    tax_rate: Decimal | int | str | None = None
    discount_amount: Decimal | int | str | None = None
    valid_until: date | None = None
    line_items: list[dict[str, Any]] | None = None
    terms: dict[str, Any] | None = None

    @property
    def touches_amounts(self) -> bool:
        return any(
            value is not None
            for value in (self.total_amount, self.tax_rate, self.discount_amount)
        )


@dataclass(frozen=True)
class QuoteDTO:
    """Read view of a quote with derived fields populated."""

    id: UUID
    tenant_id: UUID
    client_id: UUID
    project_id: UUID | None
    quote_number: str
    type: QuoteType
    title: str
    description: str | None
    total_amount: Decimal
    discount_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    final_amount: Decimal
    status: QuoteStatus
    effective_status: QuoteStatus
    valid_until: date
    rejection_reason: str | None
    created_by_id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None
    sent_at: datetime | None = None
    viewed_at: datetime | None = None
    accepted_at: datetime | None = None
    rejected_at: datetime | None = None
    line_items: list[dict[str, Any]] = field(default_factory=list)
    terms: dict[str, Any] = field(default_factory=dict)

    @property
    def taxable_amount(self) -> Decimal:
        return self.total_amount - self.discount_amount

    @property
    def is_expired(self) -> bool:
        return self.effective_status == QuoteStatus.EXPIRED


@dataclass(frozen=True)
class ProjectDTO:
    """Read view of a project created or linked by conversion."""

    id: UUID
    tenant_id: UUID
    client_id: UUID
    name: str
    description: str | None
    budget: Decimal
    status: str
    source_quote_id: UUID | None


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of accepting a quote."""

    quote: QuoteDTO
    project: ProjectDTO
    project_created: bool
    previous_status: QuoteStatus


@dataclass(frozen=True)
class QuoteFilter:
    """List filters.  ``status`` matches the effective status."""

    status: QuoteStatus | None = None
    type: QuoteType | None = None
    client_id: UUID | None = None
    search: str | None = None


@dataclass(frozen=True)
class QuoteStatistics:
    """Per-tenant (or per-client) quote figures for the view layer."""

    total: int
    by_status: dict[QuoteStatus, int]
    expiring_soon: int
    total_value: Decimal
    accepted_value: Decimal
    conversion_rate: Decimal

    def count(self, status: QuoteStatus) -> int:
        return self.by_status.get(status, 0)
