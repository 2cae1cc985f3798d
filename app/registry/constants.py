"""
Central constants for the document registry.
"""
from __future__ import annotations

from enum import Enum, IntEnum


class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    VERIFIER = "verifier"
    # Derived from the presence of a student profile, never stored as an assignment.
    STUDENT = "student"


# Roles that live in the role_assignments table.
ASSIGNABLE_ROLES = frozenset({Role.OWNER, Role.ADMIN, Role.VERIFIER})


class Year(IntEnum):
    FE = 0
    SE = 1
    TE = 2
    BE = 3


class Branch(IntEnum):
    MECHANICAL = 0
    CIVIL = 1
    CS = 2
    MECHATRONICS = 3


BRANCH_LABELS = {
    Branch.MECHANICAL: "Mechanical",
    Branch.CIVIL: "Civil",
    Branch.CS: "CS",
    Branch.MECHATRONICS: "Mechatronics",
}
