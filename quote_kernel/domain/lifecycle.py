"""
Quote lifecycle domain types (``quote_kernel.domain.lifecycle``).

Responsibility
--------------
Pure definition of the quote status state machine: the closed set of
statuses, the closed set of actions, the transition table, and the guard
predicates callers query before invoking an operation.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``QUOTE_TRANSITIONS`` is the only source of legal edges.  There is no
  edge from ``draft`` to ``accepted``.
* Terminal statuses (accepted, rejected, expired) have no outgoing edges.
* Expiry is derived: a non-terminal quote whose ``valid_until`` has passed
  is *effectively* expired, whatever its stored status says.  Nothing here
  writes ``expired``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from quote_kernel.exceptions import IllegalTransitionError


class QuoteStatus(str, Enum):
    """Quote lifecycle states."""

    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class QuoteType(str, Enum):
    """Kind of work the quote prices."""

    DESIGN = "design"
    CONSTRUCTION = "construction"


class QuoteAction(str, Enum):
    """Named operations of the state machine."""

    SEND = "send"
    MARK_VIEWED = "mark_viewed"
    ACCEPT = "accept"
    REJECT = "reject"


@dataclass(frozen=True)
class Transition:
    """One row of the transition table."""

    action: QuoteAction
    allowed_from: frozenset[QuoteStatus]
    to_status: QuoteStatus


QUOTE_TRANSITIONS: dict[QuoteAction, Transition] = {
    QuoteAction.SEND: Transition(
        QuoteAction.SEND,
        frozenset({QuoteStatus.DRAFT}),
        QuoteStatus.SENT,
    ),
    QuoteAction.MARK_VIEWED: Transition(
        QuoteAction.MARK_VIEWED,
        frozenset({QuoteStatus.SENT}),
        QuoteStatus.VIEWED,
    ),
    QuoteAction.ACCEPT: Transition(
        QuoteAction.ACCEPT,
        frozenset({QuoteStatus.SENT, QuoteStatus.VIEWED}),
        QuoteStatus.ACCEPTED,
    ),
    QuoteAction.REJECT: Transition(
        QuoteAction.REJECT,
        frozenset({QuoteStatus.SENT, QuoteStatus.VIEWED}),
        QuoteStatus.REJECTED,
    ),
}

TERMINAL_QUOTE_STATUSES: frozenset[QuoteStatus] = frozenset({
    QuoteStatus.ACCEPTED,
    QuoteStatus.REJECTED,
    QuoteStatus.EXPIRED,
})

# Statuses counted as "dispatched" for conversion analytics
DISPATCHED_QUOTE_STATUSES: frozenset[QuoteStatus] = frozenset({
    QuoteStatus.SENT,
    QuoteStatus.VIEWED,
    QuoteStatus.ACCEPTED,
    QuoteStatus.REJECTED,
})


def allowed_edges() -> frozenset[tuple[QuoteStatus, QuoteStatus]]:
    """Every (from, to) pair the table permits."""
    return frozenset(
        (source, transition.to_status)
        for transition in QUOTE_TRANSITIONS.values()
        for source in transition.allowed_from
    )


# =========================================================================
# Expiry (derived)
# =========================================================================


def is_lapsed(valid_until: date, today: date) -> bool:
    """A quote is valid through the end of its ``valid_until`` date."""
    return valid_until < today


def effective_status(status: QuoteStatus, valid_until: date, today: date) -> QuoteStatus:
    """Stored status, or EXPIRED for a non-terminal quote past its date."""
    if status not in TERMINAL_QUOTE_STATUSES and is_lapsed(valid_until, today):
        return QuoteStatus.EXPIRED
    return status


# =========================================================================
# Guards
# =========================================================================


def can_perform(
    action: QuoteAction,
    status: QuoteStatus,
    valid_until: date,
    today: date,
) -> bool:
    """True when ``action`` is legal from the quote's effective status."""
    current = effective_status(status, valid_until, today)
    return current in QUOTE_TRANSITIONS[action].allowed_from


def can_be_sent(status: QuoteStatus, valid_until: date, today: date) -> bool:
    return can_perform(QuoteAction.SEND, status, valid_until, today)


def can_be_viewed(status: QuoteStatus, valid_until: date, today: date) -> bool:
    return can_perform(QuoteAction.MARK_VIEWED, status, valid_until, today)


def can_be_accepted(status: QuoteStatus, valid_until: date, today: date) -> bool:
    return can_perform(QuoteAction.ACCEPT, status, valid_until, today)


def can_be_rejected(status: QuoteStatus, valid_until: date, today: date) -> bool:
    return can_perform(QuoteAction.REJECT, status, valid_until, today)


def plan_transition(
    quote_id: str,
    action: QuoteAction,
    status: QuoteStatus,
    valid_until: date,
    today: date,
) -> QuoteStatus:
    """
    Resolve the target status of ``action`` or refuse it.

    Raises:
        IllegalTransitionError: naming the effective current status and
            the requested action.
    """
    current = effective_status(status, valid_until, today)
    transition = QUOTE_TRANSITIONS[action]
    if current not in transition.allowed_from:
        raise IllegalTransitionError(quote_id, current.value, action.value)
    return transition.to_status
