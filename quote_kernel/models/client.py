"""
Module: quote_kernel.models.client
Responsibility: ORM persistence for the clients that receive quotes.
    Clients are owned and maintained by the outer application; the kernel
    only verifies that a quote's client belongs to the same tenant.
Architecture position: Kernel > Models.  May import from db/ only.
"""

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from quote_kernel.db.base import TenantScopedBase


class ClientModel(TenantScopedBase):
    """A tenant's customer."""

    __tablename__ = "clients"

    __table_args__ = (
        Index("idx_client_tenant_name", "tenant_id", "name"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<ClientModel {self.name}>"
