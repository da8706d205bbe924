"""
Tests for the pure quote state machine (quote_kernel/domain/lifecycle.py).

Covers:
- The transition table is exactly the allowed edge set
- Terminal statuses have no way out; draft never reaches accepted
- Derived expiry and its date boundary
- Guards and plan_transition error reporting
"""

from datetime import date, timedelta

import pytest

from quote_kernel.domain.lifecycle import (
    QUOTE_TRANSITIONS,
    TERMINAL_QUOTE_STATUSES,
    QuoteAction,
    QuoteStatus,
    allowed_edges,
    can_be_accepted,
    can_be_rejected,
    can_be_sent,
    can_be_viewed,
    can_perform,
    effective_status,
    is_lapsed,
    plan_transition,
)
from quote_kernel.exceptions import IllegalTransitionError

TODAY = date(2024, 1, 1)
FUTURE = TODAY + timedelta(days=10)
PAST = TODAY - timedelta(days=1)


class TestTransitionTable:

    def test_edges_are_exactly_the_documented_ones(self):
        S = QuoteStatus
        assert allowed_edges() == {
            (S.DRAFT, S.SENT),
            (S.SENT, S.VIEWED),
            (S.SENT, S.ACCEPTED),
            (S.VIEWED, S.ACCEPTED),
            (S.SENT, S.REJECTED),
            (S.VIEWED, S.REJECTED),
        }

    def test_every_action_has_a_row(self):
        assert set(QUOTE_TRANSITIONS) == set(QuoteAction)

    def test_no_draft_to_accepted(self):
        assert (QuoteStatus.DRAFT, QuoteStatus.ACCEPTED) not in allowed_edges()
        assert not can_be_accepted(QuoteStatus.DRAFT, FUTURE, TODAY)

    def test_expired_is_never_a_target(self):
        assert all(t.to_status != QuoteStatus.EXPIRED for t in QUOTE_TRANSITIONS.values())

    @pytest.mark.parametrize("status", sorted(TERMINAL_QUOTE_STATUSES, key=lambda s: s.value))
    @pytest.mark.parametrize("action", list(QuoteAction))
    def test_terminal_statuses_allow_nothing(self, status, action):
        assert not can_perform(action, status, FUTURE, TODAY)


class TestDerivedExpiry:

    def test_valid_through_the_end_of_valid_until(self):
        assert not is_lapsed(TODAY, TODAY)
        assert is_lapsed(PAST, TODAY)

    @pytest.mark.parametrize("status", [QuoteStatus.DRAFT, QuoteStatus.SENT, QuoteStatus.VIEWED])
    def test_open_quote_past_date_is_expired(self, status):
        assert effective_status(status, PAST, TODAY) == QuoteStatus.EXPIRED
        assert effective_status(status, TODAY, TODAY) == status

    @pytest.mark.parametrize("status", [QuoteStatus.ACCEPTED, QuoteStatus.REJECTED])
    def test_terminal_quote_keeps_its_status(self, status):
        assert effective_status(status, PAST, TODAY) == status


class TestGuards:

    def test_can_be_sent(self):
        assert can_be_sent(QuoteStatus.DRAFT, FUTURE, TODAY)
        assert not can_be_sent(QuoteStatus.SENT, FUTURE, TODAY)
        assert not can_be_sent(QuoteStatus.DRAFT, PAST, TODAY)

    def test_can_be_viewed(self):
        assert can_be_viewed(QuoteStatus.SENT, FUTURE, TODAY)
        assert not can_be_viewed(QuoteStatus.VIEWED, FUTURE, TODAY)
        assert not can_be_viewed(QuoteStatus.DRAFT, FUTURE, TODAY)

    @pytest.mark.parametrize("status", [QuoteStatus.SENT, QuoteStatus.VIEWED])
    def test_accept_and_reject_from_dispatched(self, status):
        assert can_be_accepted(status, FUTURE, TODAY)
        assert can_be_rejected(status, FUTURE, TODAY)

    @pytest.mark.parametrize("status", [QuoteStatus.SENT, QuoteStatus.VIEWED])
    def test_lapsed_quote_cannot_be_accepted_or_rejected(self, status):
        assert not can_be_accepted(status, PAST, TODAY)
        assert not can_be_rejected(status, PAST, TODAY)

    def test_guards_agree_with_table(self):
        for action, transition in QUOTE_TRANSITIONS.items():
            for status in QuoteStatus:
                if status == QuoteStatus.EXPIRED:
                    continue
                expected = status in transition.allowed_from
                assert can_perform(action, status, FUTURE, TODAY) is expected


class TestPlanTransition:

    def test_returns_target(self):
        assert plan_transition("q", QuoteAction.SEND, QuoteStatus.DRAFT, FUTURE, TODAY) == QuoteStatus.SENT
        assert plan_transition("q", QuoteAction.ACCEPT, QuoteStatus.VIEWED, FUTURE, TODAY) == QuoteStatus.ACCEPTED

    def test_illegal_names_current_and_requested(self):
        with pytest.raises(IllegalTransitionError) as exc_info:
            plan_transition("q-1", QuoteAction.REJECT, QuoteStatus.DRAFT, FUTURE, TODAY)

        err = exc_info.value
        assert err.quote_id == "q-1"
        assert err.current_status == "draft"
        assert err.requested_action == "reject"
        assert err.code == "ILLEGAL_TRANSITION"

    def test_lapsed_quote_reports_expired(self):
        with pytest.raises(IllegalTransitionError) as exc_info:
            plan_transition("q-2", QuoteAction.ACCEPT, QuoteStatus.SENT, PAST, TODAY)
        assert exc_info.value.current_status == "expired"
