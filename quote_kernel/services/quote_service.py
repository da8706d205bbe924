"""
QuoteService -- creation and amendment of draft quotes.

Responsibility:
    Turns a validated ``QuoteDraft`` into a persisted ``draft`` quote and
    applies ``QuoteAmendment`` changes to drafts.  Every path that touches
    a driving amount goes through ``financials.compute``.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.

Invariants enforced:
    - Derived amounts are written only via ``QuoteModel.apply_amounts``.
    - The client (and the optional project) belongs to the quote's tenant.
    - New quotes are stored in ``draft``; only drafts can be amended.
    - quote_number is unique per tenant; when not supplied it comes from
      the tenant's locked sequence.

Failure modes:
    - ValidationError for bad amounts, unknown type, empty title, a client
      or project outside the tenant, a duplicate quote number, or an
      amendment of a non-draft quote.
    - QuoteNotFoundError for an unknown id or a quote of another tenant.
"""

from __future__ import annotations

from datetime import timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from quote_kernel.domain.clock import Clock, SystemClock
from quote_kernel.domain.dtos import QuoteAmendment, QuoteDraft, QuoteDTO
from quote_kernel.domain.financials import compute
from quote_kernel.domain.lifecycle import QuoteStatus, QuoteType
from quote_kernel.domain.settings import DEFAULT_SETTINGS, QuoteSettings
from quote_kernel.exceptions import QuoteNotFoundError, ValidationError
from quote_kernel.logging_config import LogContext, get_logger
from quote_kernel.models.client import ClientModel
from quote_kernel.models.project import ProjectModel
from quote_kernel.models.quote import QuoteModel
from quote_kernel.services.base import BaseService
from quote_kernel.services.sequence_service import SequenceService

logger = get_logger("services.quote")


def _quote_type(value: QuoteType | str) -> QuoteType:
    try:
        return QuoteType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in QuoteType)
        raise ValidationError("type", f"must be one of: {allowed}") from None


def _title(value: str | None) -> str:
    title = (value or "").strip()
    if not title:
        raise ValidationError("title", "must not be empty")
    if len(title) > 255:
        raise ValidationError("title", "must be at most 255 characters")
    return title


class QuoteService(BaseService[QuoteModel]):
    """
    Create and amend draft quotes.  Flush-only; the caller commits.

    Usage:
        service = QuoteService(session, clock)
        quote = service.create_quote(tenant_id, actor_id, QuoteDraft(...))
        session.commit()
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: QuoteSettings | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._settings = settings or DEFAULT_SETTINGS
        self._sequences = SequenceService(session)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_quote(self, tenant_id: UUID, actor_id: UUID, draft: QuoteDraft) -> QuoteDTO:
        """
        Persist a new quote in ``draft``.

        Postconditions:
            - tax_amount / final_amount computed from the draft.
            - valid_until defaults to today + default_validity_days.
            - quote_number allocated when the draft carries none.
        """
        with LogContext.bind(tenant_id=str(tenant_id), actor_id=str(actor_id)):
            quote_type = _quote_type(draft.type)
            title = _title(draft.title)
            amounts = compute(draft.total_amount, draft.discount_amount, draft.tax_rate)
            self._require_client(tenant_id, draft.client_id)
            if draft.project_id is not None:
                self._require_project(tenant_id, draft.project_id)

            today = self._clock.today()
            valid_until = draft.valid_until or today + timedelta(
                days=self._settings.default_validity_days
            )
            quote_number = self._resolve_quote_number(tenant_id, draft.quote_number)

            quote = QuoteModel(
                tenant_id=tenant_id,
                client_id=draft.client_id,
                project_id=draft.project_id,
                quote_number=quote_number,
                type=quote_type.value,
                title=title,
                description=draft.description,
                status=QuoteStatus.DRAFT.value,
                valid_until=valid_until,
                line_items=list(draft.line_items) if draft.line_items else None,
                terms=dict(draft.terms) if draft.terms else None,
                created_by_id=actor_id,
            )
            quote.apply_amounts(amounts)
            self.session.add(quote)
            self.session.flush()

            logger.info(
                "quote_created",
                extra={
                    "quote_id": str(quote.id),
                    "quote_number": quote_number,
                    "final_amount": str(amounts.final_amount),
                    "valid_until": valid_until.isoformat(),
                },
            )
            return quote.to_dto(today)

    # ------------------------------------------------------------------
    # Amendment
    # ------------------------------------------------------------------

    def update_quote(
        self,
        tenant_id: UUID,
        quote_id: UUID,
        actor_id: UUID,
        changes: QuoteAmendment,
    ) -> QuoteDTO:
        """
        Apply ``changes`` to a draft quote.

        Any change to total, discount or tax rate recomputes the derived
        amounts from the merged driving fields.
        """
        with LogContext.bind(
            tenant_id=str(tenant_id), actor_id=str(actor_id), quote_id=str(quote_id),
        ):
            quote = self._load(tenant_id, quote_id)
            if quote.quote_status != QuoteStatus.DRAFT:
                raise ValidationError(
                    "status", f"only draft quotes can be edited (status is '{quote.status}')"
                )

            changed: list[str] = []
            if changes.type is not None:
                quote.type = _quote_type(changes.type).value
                changed.append("type")
            if changes.title is not None:
                quote.title = _title(changes.title)
                changed.append("title")
            if changes.description is not None:
                quote.description = changes.description
                changed.append("description")
            if changes.valid_until is not None:
                quote.valid_until = changes.valid_until
                changed.append("valid_until")
            if changes.line_items is not None:
                quote.line_items = list(changes.line_items)
                changed.append("line_items")
            if changes.terms is not None:
                quote.terms = dict(changes.terms)
                changed.append("terms")

            if changes.touches_amounts:
                amounts = compute(
                    changes.total_amount if changes.total_amount is not None else quote.total_amount,
                    changes.discount_amount if changes.discount_amount is not None else quote.discount_amount,
                    changes.tax_rate if changes.tax_rate is not None else quote.tax_rate,
                )
                quote.apply_amounts(amounts)
                changed.append("amounts")

            if changed:
                quote.updated_by_id = actor_id
                self.session.flush()

            logger.info(
                "quote_updated",
                extra={"changed_fields": changed, "final_amount": str(quote.final_amount)},
            )
            return quote.to_dto(self._clock.today())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self, tenant_id: UUID, quote_id: UUID) -> QuoteModel:
        quote = self.session.execute(
            select(QuoteModel)
            .where(QuoteModel.id == quote_id, QuoteModel.tenant_id == tenant_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if quote is None:
            raise QuoteNotFoundError(str(quote_id), str(tenant_id))
        return quote

    def _require_client(self, tenant_id: UUID, client_id: UUID) -> None:
        found = self.session.execute(
            select(ClientModel.id).where(
                ClientModel.id == client_id, ClientModel.tenant_id == tenant_id,
            )
        ).scalar_one_or_none()
        if found is None:
            raise ValidationError("client_id", "client does not exist for this tenant")

    def _require_project(self, tenant_id: UUID, project_id: UUID) -> None:
        found = self.session.execute(
            select(ProjectModel.id).where(
                ProjectModel.id == project_id, ProjectModel.tenant_id == tenant_id,
            )
        ).scalar_one_or_none()
        if found is None:
            raise ValidationError("project_id", "project does not exist for this tenant")

    def _number_taken(self, tenant_id: UUID, number: str) -> bool:
        return self.session.execute(
            select(QuoteModel.id).where(
                QuoteModel.tenant_id == tenant_id, QuoteModel.quote_number == number,
            )
        ).scalar_one_or_none() is not None

    def _resolve_quote_number(self, tenant_id: UUID, requested: str | None) -> str:
        if requested is None:
            sequence_name = SequenceService.quote_sequence(tenant_id)
            # Skip numbers already claimed by explicitly numbered quotes
            while True:
                number = self._settings.format_quote_number(
                    self._sequences.next_value(sequence_name)
                )
                if not self._number_taken(tenant_id, number):
                    return number

        number = requested.strip()
        if not number:
            raise ValidationError("quote_number", "must not be empty")
        if self._number_taken(tenant_id, number):
            raise ValidationError("quote_number", f"'{number}' is already used")
        return number
