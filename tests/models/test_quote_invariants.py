"""
ORM-level invariant checks on QuoteModel.

Writes that bypass QuoteService / QuoteLifecycleService are refused at
flush time:
- derived amounts that do not match the calculator
- status changes through the ORM
- re-pointing or clearing the project link
- a rejection reason on a non-rejected quote
"""

from decimal import Decimal

import pytest

from quote_kernel.domain.financials import compute
from quote_kernel.exceptions import ImmutabilityViolationError
from quote_kernel.models.project import ProjectModel
from quote_kernel.models.quote import QuoteModel


@pytest.fixture
def quote_model(session, create_quote):
    dto = create_quote()
    return session.get(QuoteModel, dto.id)


@pytest.fixture
def make_project(session, client, tenant_id, test_actor_id):
    def _make(name="Linked project"):
        project = ProjectModel(
            tenant_id=tenant_id, client_id=client.id, name=name,
            budget=Decimal("0"), created_by_id=test_actor_id,
        )
        session.add(project)
        session.flush()
        return project

    return _make


class TestDerivedAmounts:

    def test_direct_final_amount_write_refused(self, session, quote_model):
        quote_model.final_amount = Decimal("1.00")

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "Quote"
        assert exc_info.value.code == "IMMUTABILITY_VIOLATION"

    def test_driving_field_without_recompute_refused(self, session, quote_model):
        quote_model.total_amount = Decimal("5000.00")

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_apply_amounts_accepted(self, session, quote_model):
        quote_model.apply_amounts(compute("5000", "0", "10"))
        session.flush()

        assert quote_model.final_amount == Decimal("5500.00")

    def test_insert_with_inconsistent_amounts_refused(self, session, client, tenant_id, test_actor_id, today):
        amounts = compute("100", "0", "10")
        quote = QuoteModel(
            tenant_id=tenant_id, client_id=client.id, quote_number="BAD-1",
            type="design", title="Forged", valid_until=today,
            created_by_id=test_actor_id,
        )
        quote.apply_amounts(amounts)
        quote.final_amount = Decimal("50.00")
        session.add(quote)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestStatusAndLink:

    def test_status_write_through_orm_refused(self, session, quote_model):
        quote_model.status = "accepted"

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_insert_outside_draft_refused(self, session, client, tenant_id, test_actor_id, today):
        quote = QuoteModel(
            tenant_id=tenant_id, client_id=client.id, quote_number="BAD-2",
            type="design", title="Skips draft", valid_until=today,
            status="accepted", created_by_id=test_actor_id,
        )
        quote.apply_amounts(compute("100", "0", "0"))
        session.add(quote)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_first_link_allowed(self, session, quote_model, make_project):
        project = make_project()
        quote_model.project_id = project.id
        session.flush()

        assert quote_model.project_id == project.id

    def test_relink_refused(self, session, quote_model, make_project):
        quote_model.project_id = make_project("First").id
        session.flush()

        quote_model.project_id = make_project("Second").id
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_unlink_refused(self, session, quote_model, make_project):
        quote_model.project_id = make_project().id
        session.flush()

        quote_model.project_id = None
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_rejection_reason_on_draft_refused(self, session, quote_model):
        quote_model.rejection_reason = "Changed my mind"

        with pytest.raises(ImmutabilityViolationError):
            session.flush()
