"""
Module: quote_kernel.models.project
Responsibility: ORM persistence for projects produced by quote conversion.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - At most one project per source quote (unique source_quote_id).
    - budget is Decimal, seeded from the quote's final_amount.

Failure modes:
    - IntegrityError on a second project for the same quote; surfaced by
      ConversionService as PersistenceError.
"""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from quote_kernel.db.base import TenantScopedBase, UUIDString
from quote_kernel.db.types import Money


class ProjectStatus(str, Enum):
    """Project lifecycle status.  Conversion always creates PLANNING."""

    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProjectModel(TenantScopedBase):
    """
    A tenant project.

    Guarantees:
        - source_quote_id points back at the quote that produced it
          (plain column: quotes.project_id already holds the FK).
    """

    __tablename__ = "projects"

    __table_args__ = (
        CheckConstraint(
            "status IN ('planning', 'active', 'on_hold', 'completed', 'cancelled')",
            name="ck_projects_valid_status",
        ),
        Index("idx_project_tenant_status", "tenant_id", "status"),
        Index("idx_project_source_quote", "source_quote_id", unique=True),
    )

    client_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("clients.id"), nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    budget: Mapped[Money] = mapped_column(nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ProjectStatus.PLANNING.value,
    )
    source_quote_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def to_dto(self):
        from quote_kernel.domain.dtos import ProjectDTO

        return ProjectDTO(
            id=self.id,
            tenant_id=self.tenant_id,
            client_id=self.client_id,
            name=self.name,
            description=self.description,
            budget=self.budget,
            status=self.status,
            source_quote_id=self.source_quote_id,
        )

    def __repr__(self) -> str:
        return f"<ProjectModel {self.name} [{self.status}]>"
