from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class RegistryState(Base):
    """
    Single-row aggregate header: who owns the registry and the document counter.
    """

    __tablename__ = "registry_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    owner_address: Mapped[str] = mapped_column(String(128), nullable=False)
    # Last document id handed out; the next submission gets document_count + 1.
    document_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    initialized_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)


class AuditEvent(Base):
    """
    Append-only audit trail event.
    Keep this table intentionally generic; module tables are referenced by entity_type/entity_id.
    """

    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    actor: Mapped[str | None] = mapped_column(String(128), nullable=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "doc.verify"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "Document"
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # small JSON string


@dataclass(frozen=True)
class AuditEventView:
    id: int
    created_at: datetime
    request_id: str | None
    actor: str | None
    action: str
    entity_type: str | None
    entity_id: str | None
    metadata_json: str | None


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.registry.modules.principals.models import RoleAssignment, StudentProfile  # noqa: E402,F401
from app.registry.modules.documents.models import Document, DocumentVerification  # noqa: E402,F401
from app.registry.modules.access.models import AccessGrant  # noqa: E402,F401
