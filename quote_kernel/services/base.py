"""
BaseService -- abstract base for quote kernel services.

Responsibility:
    Common constructor and session-handling contract for every write-side
    service.  Services receive a SQLAlchemy ``Session`` and persist with
    ``session.flush()``.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit.  QuoteLifecycleService is the one exception; with
    ``auto_commit=True`` it owns the commit / rollback of each operation.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from quote_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide read methods -- those belong in
          ``quote_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
