from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.registry.constants import Branch, Year
from app.registry.models import Base


class RoleAssignment(Base):
    __tablename__ = "role_assignments"

    address: Mapped[str] = mapped_column(String(128), primary_key=True)
    role: Mapped[str] = mapped_column(String(16), primary_key=True)  # Role.value

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)  # display name (admins)
    granted_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)


class StudentProfile(Base):
    __tablename__ = "student_profiles"

    address: Mapped[str] = mapped_column(String(128), primary_key=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)  # Year
    branch: Mapped[int] = mapped_column(Integer, nullable=False)  # Branch
    # Not unique: the registry never cross-checks institutional ids.
    id_number: Mapped[str] = mapped_column(String(64), nullable=False)

    registered_by: Mapped[str] = mapped_column(String(128), nullable=False)
    registered_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)


@dataclass(frozen=True)
class StudentView:
    address: str
    name: str
    year: Year
    branch: Branch
    id_number: str
    registered_at: datetime
