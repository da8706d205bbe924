"""
Module: quote_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/, domain/ and
    models/.  MUST NOT import from services/.

Invariants enforced:
    - Read-only: selectors never call session.add(), delete(), flush() or
      commit().  In particular no selector ever writes ``expired``.
    - DTO return convention: public methods return frozen dataclasses or
      computed values, never ORM instances.
    - Effective status is always derived against the injected clock.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from quote_kernel.db.base import Base
from quote_kernel.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for selectors.

    The caller owns the session and its transaction scope.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
