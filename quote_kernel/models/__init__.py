"""SQLAlchemy ORM models for the quote kernel."""

from quote_kernel.models.client import ClientModel
from quote_kernel.models.project import ProjectModel, ProjectStatus
from quote_kernel.models.quote import QuoteModel
from quote_kernel.models.sequence import SequenceCounter

__all__ = [
    "ClientModel",
    "ProjectModel",
    "ProjectStatus",
    "QuoteModel",
    "SequenceCounter",
]
