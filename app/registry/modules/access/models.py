from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from app.registry.models import Base


class AccessGrant(Base):
    """Presence of a row means the grantee may view the document."""

    __tablename__ = "access_grants"

    document_id: Mapped[int] = mapped_column(ForeignKey("documents.id", ondelete="CASCADE"), primary_key=True)
    grantee: Mapped[str] = mapped_column(String(128), primary_key=True)

    granted_by: Mapped[str] = mapped_column(String(128), nullable=False)
    granted_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
