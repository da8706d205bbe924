"""
Module: quote_kernel.models.sequence
Responsibility: Named counter rows backing per-tenant quote numbering.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - One row per sequence name; current_value only ever increases.
    - Values are allocated under a row lock by SequenceService, never by
      aggregate-max-plus-one over the quotes table.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from quote_kernel.db.base import Base


class SequenceCounter(Base):
    """Sequence counter table.  Row-level locking keeps it monotonic."""

    __tablename__ = "sequence_counters"

    # e.g. "quote:<tenant uuid>"
    name: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)

    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<SequenceCounter {self.name}={self.current_value}>"
