from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from app.registry.audit import record_event
from app.registry.constants import ASSIGNABLE_ROLES, Branch, Role, Year
from app.registry.errors import AlreadyExists, AlreadyInitialized, NotFound, NotInitialized, PermissionDenied
from app.registry.models import RegistryState
from app.registry.modules.principals.models import RoleAssignment, StudentProfile, StudentView

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def clean_address(addr: str | None) -> str:
    """Strip surrounding whitespace; returns "" for blank input."""
    return (addr or "").strip()


def normalize_address(addr: str | None) -> str:
    a = clean_address(addr)
    if not a:
        raise ValueError("Address is required.")
    return a


def _parse_enum(enum_cls, value, label: str):
    """Accept a member, its wire value (an int, or a digit string) or its name."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid {label}: {value!r}")
    if isinstance(value, str):
        raw = value.strip()
        if raw.isdigit():
            value = int(raw)
        else:
            try:
                return enum_cls[raw.upper()]
            except KeyError:
                raise ValueError(f"Invalid {label}: {value!r}") from None
    if not isinstance(value, int):
        raise ValueError(f"Invalid {label}: {value!r}")
    try:
        return enum_cls(value)
    except ValueError:
        raise ValueError(f"Invalid {label}: {value!r}") from None


def parse_year(value: int | str | Year) -> Year:
    """Year member, 0..3 or "FE".."BE"."""
    return _parse_enum(Year, value, "year")


def parse_branch(value: int | str | Branch) -> Branch:
    return _parse_enum(Branch, value, "branch")


def get_state(s: "Session") -> RegistryState | None:
    return s.get(RegistryState, 1)


def require_state(s: "Session") -> RegistryState:
    state = get_state(s)
    if state is None:
        raise NotInitialized("Registry has not been initialized.")
    return state


def has_role(s: "Session", addr: str, role: Role) -> bool:
    return s.get(RoleAssignment, (addr, role.value)) is not None


def is_owner(s: "Session", addr: str) -> bool:
    state = get_state(s)
    return state is not None and state.owner_address == addr


def is_student(s: "Session", addr: str) -> bool:
    return s.get(StudentProfile, addr) is not None


def roles_of(s: "Session", addr: str) -> frozenset[Role]:
    rows = s.query(RoleAssignment.role).filter(RoleAssignment.address == addr).all()
    roles = {Role(r) for (r,) in rows} & ASSIGNABLE_ROLES
    if is_student(s, addr):
        roles.add(Role.STUDENT)
    return frozenset(roles)


def _grant_role(s: "Session", addr: str, role: Role, *, now: datetime, granted_by: str | None, name: str | None = None) -> bool:
    """Insert a role row. Returns False when the address already held the role."""
    if role not in ASSIGNABLE_ROLES:
        raise ValueError(f"Role {role.value} cannot be assigned directly.")
    if has_role(s, addr, role):
        return False
    s.add(RoleAssignment(address=addr, role=role.value, name=name, granted_by=granted_by, created_at=now))
    return True


def initialize(s: "Session", owner: str, *, now: datetime) -> RegistryState:
    if get_state(s) is not None:
        raise AlreadyInitialized("Registry is already initialized.")
    state = RegistryState(id=1, owner_address=owner, document_count=0, initialized_at=now)
    s.add(state)
    _grant_role(s, owner, Role.OWNER, now=now, granted_by=None)
    _grant_role(s, owner, Role.ADMIN, now=now, granted_by=None, name="Owner")
    record_event(s, actor=owner, action="registry.initialize", now=now, entity_type="Registry", entity_id="1")
    return state


def add_admin(s: "Session", caller: str, target: str, name: str, *, now: datetime) -> bool:
    state = require_state(s)
    if caller != state.owner_address:
        raise PermissionDenied("Only the owner can add admins.")
    added = _grant_role(s, target, Role.ADMIN, now=now, granted_by=caller, name=(name or "").strip() or None)
    if added:
        record_event(
            s,
            actor=caller,
            action="principal.add_admin",
            now=now,
            entity_type="Principal",
            entity_id=target,
            metadata={"name": name},
        )
    return added


def add_verifier(s: "Session", caller: str, target: str, *, now: datetime) -> bool:
    state = require_state(s)
    if caller != state.owner_address:
        raise PermissionDenied("Only the owner can add verifiers.")
    added = _grant_role(s, target, Role.VERIFIER, now=now, granted_by=caller)
    if added:
        record_event(s, actor=caller, action="principal.add_verifier", now=now, entity_type="Principal", entity_id=target)
    return added


def register_student(
    s: "Session",
    caller: str,
    addr: str,
    *,
    name: str,
    year: Year,
    branch: Branch,
    id_number: str,
    now: datetime,
) -> StudentProfile:
    require_state(s)
    if not has_role(s, caller, Role.ADMIN):
        raise PermissionDenied("Only admins can register students.")
    if is_student(s, addr):
        raise AlreadyExists(f"Student {addr} is already registered.")

    profile = StudentProfile(
        address=addr,
        name=name or "",
        year=int(year),
        branch=int(branch),
        id_number=id_number or "",
        registered_by=caller,
        registered_at=now,
    )
    s.add(profile)
    record_event(
        s,
        actor=caller,
        action="student.register",
        now=now,
        entity_type="Student",
        entity_id=addr,
        metadata={"name": profile.name, "year": year.name, "branch": branch.name, "id_number": profile.id_number},
    )
    return profile


def to_view(p: StudentProfile) -> StudentView:
    return StudentView(
        address=p.address,
        name=p.name,
        year=Year(p.year),
        branch=Branch(p.branch),
        id_number=p.id_number,
        registered_at=p.registered_at,
    )


def get_student(s: "Session", addr: str) -> StudentView:
    p = s.get(StudentProfile, addr)
    if p is None:
        raise NotFound(f"Student {addr} is not registered.")
    return to_view(p)
