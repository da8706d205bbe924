"""
Tests for quote-to-project conversion on accept.

Covers:
- Accept creates exactly one planning project, linked both ways
- Budget equals the quote's final amount
- An already linked project is reused, not replaced
- A forced database failure rolls back status and project together
- ConversionService inside a caller-managed transaction
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from quote_kernel.domain.dtos import QuoteDraft
from quote_kernel.domain.lifecycle import QuoteStatus, QuoteType
from quote_kernel.exceptions import IllegalTransitionError, PersistenceError
from quote_kernel.models.project import ProjectModel
from quote_kernel.models.quote import QuoteModel
from quote_kernel.services.conversion_service import ConversionService


def project_count(session, tenant_id) -> int:
    return session.execute(
        select(func.count(ProjectModel.id)).where(ProjectModel.tenant_id == tenant_id)
    ).scalar_one()


@pytest.fixture
def sent_quote(create_quote, lifecycle, tenant_id, test_actor_id):
    quote = create_quote(description="Full strip-out and refit")
    lifecycle.send(tenant_id, quote.id, test_actor_id)
    return quote


class TestAcceptCreatesProject:

    def test_project_created_and_linked(self, session, lifecycle, sent_quote, tenant_id, test_actor_id, client):
        result = lifecycle.accept(tenant_id, sent_quote.id, test_actor_id)

        assert result.project_created is True
        assert result.previous_status == QuoteStatus.SENT
        assert result.quote.status == QuoteStatus.ACCEPTED
        assert result.quote.accepted_at is not None
        assert result.quote.project_id == result.project.id

        project = result.project
        assert project.source_quote_id == sent_quote.id
        assert project.tenant_id == tenant_id
        assert project.client_id == client.id
        assert project.name == "Kitchen remodel"
        assert project.description == "Full strip-out and refit"
        assert project.status == "planning"
        assert project.budget == Decimal("990.00")

        assert project_count(session, tenant_id) == 1

    def test_accept_from_viewed(self, lifecycle, sent_quote, tenant_id, test_actor_id):
        lifecycle.mark_viewed(tenant_id, sent_quote.id, test_actor_id)

        result = lifecycle.accept(tenant_id, sent_quote.id, test_actor_id)

        assert result.previous_status == QuoteStatus.VIEWED
        assert result.quote.status == QuoteStatus.ACCEPTED

    def test_second_accept_creates_nothing(self, session, lifecycle, sent_quote, tenant_id, test_actor_id):
        lifecycle.accept(tenant_id, sent_quote.id, test_actor_id)

        with pytest.raises(IllegalTransitionError):
            lifecycle.accept(tenant_id, sent_quote.id, test_actor_id)
        assert project_count(session, tenant_id) == 1

    def test_stored_link_matches_result(self, session, lifecycle, sent_quote, tenant_id, test_actor_id):
        result = lifecycle.accept(tenant_id, sent_quote.id, test_actor_id)

        session.expire_all()
        stored = session.get(QuoteModel, sent_quote.id)
        assert stored.status == "accepted"
        assert stored.project_id == result.project.id
        assert stored.project.source_quote_id == stored.id


class TestAcceptReusesProject:

    def test_existing_link_kept(
        self, session, quote_service, lifecycle, client, tenant_id, test_actor_id,
    ):
        project = ProjectModel(
            tenant_id=tenant_id, client_id=client.id, name="Phase 1",
            budget=Decimal("5000"), status="active", created_by_id=test_actor_id,
        )
        session.add(project)
        session.commit()

        quote = quote_service.create_quote(
            tenant_id, test_actor_id,
            QuoteDraft(
                client_id=client.id, type=QuoteType.DESIGN, title="Phase 2 design",
                total_amount=Decimal("800"), project_id=project.id,
            ),
        )
        session.commit()
        lifecycle.send(tenant_id, quote.id, test_actor_id)

        result = lifecycle.accept(tenant_id, quote.id, test_actor_id)

        assert result.project_created is False
        assert result.project.id == project.id
        assert result.project.budget == Decimal("5000")
        assert result.quote.project_id == project.id
        assert project_count(session, tenant_id) == 1


class TestAcceptAtomicity:

    def test_forced_failure_rolls_back_everything(
        self, session, lifecycle, sent_quote, tenant_id, test_actor_id, quote_selector, monkeypatch,
    ):
        def _boom(self, quote, actor_id):
            raise OperationalError("INSERT INTO projects", {}, Exception("disk full"))

        monkeypatch.setattr(ConversionService, "_create_project", _boom)

        with pytest.raises(PersistenceError) as exc_info:
            lifecycle.accept(tenant_id, sent_quote.id, test_actor_id)

        assert exc_info.value.operation == "accept"
        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert exc_info.value.user_message == "A server error occurred, please retry."

        reloaded = quote_selector.get_quote(tenant_id, sent_quote.id)
        assert reloaded.status == QuoteStatus.SENT
        assert reloaded.project_id is None
        assert reloaded.accepted_at is None
        assert project_count(session, tenant_id) == 0

    def test_failure_inside_caller_transaction(
        self, session, deterministic_clock, sent_quote, tenant_id, test_actor_id, monkeypatch,
    ):
        """Without the lifecycle wrapper the savepoint alone undoes the accept."""
        def _boom(self, quote, actor_id):
            raise OperationalError("INSERT INTO projects", {}, Exception("lock timeout"))

        monkeypatch.setattr(ConversionService, "_create_project", _boom)
        conversion = ConversionService(session, deterministic_clock)

        with pytest.raises(PersistenceError):
            conversion.accept(tenant_id, sent_quote.id, test_actor_id)

        status = session.execute(
            select(QuoteModel.status).where(QuoteModel.id == sent_quote.id)
        ).scalar_one()
        assert status == "sent"
        assert project_count(session, tenant_id) == 0

    def test_retry_after_failure_succeeds(
        self, session, lifecycle, sent_quote, tenant_id, test_actor_id, monkeypatch,
    ):
        original = ConversionService._create_project
        calls = {"n": 0}

        def _flaky(self, quote, actor_id):
            calls["n"] += 1
            if calls["n"] == 1:
                raise OperationalError("INSERT INTO projects", {}, Exception("deadlock"))
            return original(self, quote, actor_id)

        monkeypatch.setattr(ConversionService, "_create_project", _flaky)

        with pytest.raises(PersistenceError):
            lifecycle.accept(tenant_id, sent_quote.id, test_actor_id)
        result = lifecycle.accept(tenant_id, sent_quote.id, test_actor_id)

        assert result.project_created is True
        assert project_count(session, tenant_id) == 1
