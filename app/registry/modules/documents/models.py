from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.registry.models import Base


class Document(Base):
    __tablename__ = "documents"

    # Assigned from RegistryState.document_count, never by the database.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    doc_type: Mapped[str] = mapped_column(String(64), nullable=False)
    content_hash: Mapped[str] = mapped_column(Text, nullable=False)  # opaque, never recomputed
    metadata_text: Mapped[str] = mapped_column(Text, nullable=False, default="")

    submitter: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    student_id_number: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    # Unverified -> Verified
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    verifications: Mapped[list["DocumentVerification"]] = relationship(
        "DocumentVerification",
        back_populates="document",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="DocumentVerification.id",
    )


class DocumentVerification(Base):
    """One row per verifier attestation (append-only)."""

    __tablename__ = "document_verifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    document_id: Mapped[int] = mapped_column(ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    verifier: Mapped[str] = mapped_column(String(128), nullable=False)
    verified_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    document: Mapped[Document] = relationship("Document", back_populates="verifications", lazy="selectin")


@dataclass(frozen=True)
class DocumentView:
    """Read-only copy of a document handed out to callers."""

    id: int
    doc_type: str
    content_hash: str
    metadata: str
    created_at: datetime
    submitter: str
    verified: bool
    verified_by: tuple[str, ...]
    verified_at: datetime | None
    student_id_number: str
