"""
ConversionService -- accept a quote and produce its project atomically.

Responsibility:
    The ``accept`` transition.  Inside one SAVEPOINT it moves the quote to
    ``accepted`` (compare-and-set on the stored pre-state) and, when the
    quote has no project yet, creates a ``planning`` project seeded from the
    quote and links both ways.  Either both writes survive or neither does.

Architecture position:
    Kernel > Services.  Called by QuoteLifecycleService.accept; usable on
    its own inside a caller-managed transaction.

Invariants enforced:
    - A quote reaches ``accepted`` only from sent / viewed (effective status).
    - At most one project per quote; an existing link is reused, never
      replaced.
    - Project budget equals the quote's final_amount at acceptance.

Failure modes:
    - IllegalTransitionError when the quote cannot be accepted.
    - ConcurrentTransitionError when the status moved under us.
    - PersistenceError wrapping any SQLAlchemyError; the savepoint is rolled
      back so the quote keeps its previous status and no project remains.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quote_kernel.domain.clock import Clock, SystemClock
from quote_kernel.domain.dtos import ConversionResult
from quote_kernel.domain.lifecycle import QuoteAction, plan_transition
from quote_kernel.exceptions import PersistenceError, QuoteNotFoundError
from quote_kernel.logging_config import get_logger
from quote_kernel.models.project import ProjectModel, ProjectStatus
from quote_kernel.models.quote import QuoteModel
from quote_kernel.services.base import BaseService
from quote_kernel.services.transition_writer import QuoteTransitionWriter

logger = get_logger("services.conversion")


class ConversionService(BaseService[QuoteModel]):
    """
    Quote-to-project conversion.  Flush-only; the caller commits.

    Usage:
        result = ConversionService(session, clock).accept(tenant_id, quote_id, actor_id)
        session.commit()
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._writer = QuoteTransitionWriter(session)

    def accept(self, tenant_id: UUID, quote_id: UUID, actor_id: UUID) -> ConversionResult:
        """
        Accept the quote and ensure it has a project.

        Postconditions:
            quote.status == accepted, quote.project_id is set and the
            project's source_quote_id points at the quote.
        """
        quote = self._load(tenant_id, quote_id)
        today = self._clock.today()
        previous = quote.quote_status
        target = plan_transition(
            str(quote.id), QuoteAction.ACCEPT, previous, quote.valid_until, today,
        )

        try:
            with self.session.begin_nested():
                self._writer.apply(
                    quote,
                    QuoteAction.ACCEPT,
                    expected=previous,
                    target=target,
                    actor_id=actor_id,
                    at=self._clock.now(),
                )
                project, created = self._ensure_project(quote, actor_id)
        except SQLAlchemyError as exc:
            self.session.expire(quote)
            logger.error(
                "quote_conversion_failed",
                extra={"quote_id": str(quote_id), "tenant_id": str(tenant_id)},
                exc_info=True,
            )
            raise PersistenceError("accept", str(exc)) from exc

        logger.info(
            "quote_converted",
            extra={
                "quote_id": str(quote.id),
                "project_id": str(project.id),
                "project_created": created,
                "budget": str(project.budget),
            },
        )
        return ConversionResult(
            quote=quote.to_dto(today),
            project=project.to_dto(),
            project_created=created,
            previous_status=previous,
        )

    def _ensure_project(
        self, quote: QuoteModel, actor_id: UUID,
    ) -> tuple[ProjectModel, bool]:
        if quote.project_id is not None:
            project = self.session.execute(
                select(ProjectModel).where(
                    ProjectModel.id == quote.project_id,
                    ProjectModel.tenant_id == quote.tenant_id,
                )
            ).scalar_one()
            return project, False

        project = self._create_project(quote, actor_id)
        quote.project_id = project.id
        quote.updated_by_id = actor_id
        self.session.flush()
        return project, True

    def _create_project(self, quote: QuoteModel, actor_id: UUID) -> ProjectModel:
        project = ProjectModel(
            tenant_id=quote.tenant_id,
            client_id=quote.client_id,
            name=quote.title,
            description=quote.description,
            budget=quote.final_amount,
            status=ProjectStatus.PLANNING.value,
            source_quote_id=quote.id,
            created_by_id=actor_id,
        )
        self.session.add(project)
        self.session.flush()
        return project

    def _load(self, tenant_id: UUID, quote_id: UUID) -> QuoteModel:
        quote = self.session.execute(
            select(QuoteModel)
            .where(QuoteModel.id == quote_id, QuoteModel.tenant_id == tenant_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if quote is None:
            raise QuoteNotFoundError(str(quote_id), str(tenant_id))
        return quote
