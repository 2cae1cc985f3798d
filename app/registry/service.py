"""
Registry service: the single entry point for every registry operation.

Each call runs under one process-wide lock and one database transaction:
authorization happens before any row is touched, and a raised error rolls the
whole transaction back.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TypeVar

from sqlalchemy.orm import Session, sessionmaker

from app.registry.audit import list_events
from app.registry.constants import Branch, Role, Year
from app.registry.db import make_engine, make_sessionmaker, session_scope
from app.registry.errors import NotDocumentOwner, PermissionDenied, RegistryError
from app.registry.models import AuditEventView, Base
from app.registry.modules.access import service as access
from app.registry.modules.documents import service as documents
from app.registry.modules.documents.models import DocumentView
from app.registry.modules.principals import service as principals
from app.registry.modules.principals.models import StudentView

logger = logging.getLogger(__name__)

T = TypeVar("T")


def utcnow() -> datetime:
    # Naive UTC, matching the DateTime(timezone=False) columns.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RegistryService:
    def __init__(self, sm: sessionmaker[Session], *, clock: Callable[[], datetime] | None = None) -> None:
        self._sm = sm
        self._clock = clock or utcnow
        self._lock = threading.RLock()

    def _run(self, op: str, fn: Callable[[Session], T]) -> T:
        with self._lock:
            try:
                with session_scope(self._sm) as s:
                    return fn(s)
            except (PermissionDenied, NotDocumentOwner) as e:
                logger.warning("Registry %s denied: %s", op, e.message)
                raise
            except RegistryError as e:
                logger.info("Registry %s rejected: %s (%s)", op, e.message, e.code)
                raise

    # Principal Directory

    def initialize(self, owner: str) -> None:
        owner = principals.normalize_address(owner)
        self._run("initialize", lambda s: principals.initialize(s, owner, now=self._clock()))
        logger.info("Registry initialized (owner=%s)", owner)

    def add_admin(self, caller: str, target: str, name: str) -> bool:
        caller = principals.clean_address(caller)
        target = principals.normalize_address(target)
        added = self._run("add_admin", lambda s: principals.add_admin(s, caller, target, name, now=self._clock()))
        if added:
            logger.info("Admin added (target=%s by=%s)", target, caller)
        return added

    def add_verifier(self, caller: str, target: str) -> bool:
        caller = principals.clean_address(caller)
        target = principals.normalize_address(target)
        added = self._run("add_verifier", lambda s: principals.add_verifier(s, caller, target, now=self._clock()))
        if added:
            logger.info("Verifier added (target=%s by=%s)", target, caller)
        return added

    def register_student(
        self,
        caller: str,
        addr: str,
        name: str,
        year: int | str | Year,
        branch: int | str | Branch,
        id_number: str,
    ) -> StudentView:
        caller = principals.clean_address(caller)
        addr = principals.normalize_address(addr)
        y = principals.parse_year(year)
        b = principals.parse_branch(branch)

        def _op(s: Session) -> StudentView:
            profile = principals.register_student(
                s, caller, addr, name=name, year=y, branch=b, id_number=id_number, now=self._clock()
            )
            return principals.to_view(profile)

        view = self._run("register_student", _op)
        logger.info("Student registered (addr=%s by=%s)", addr, caller)
        return view

    def get_student(self, addr: str) -> StudentView:
        addr = principals.clean_address(addr)
        return self._run("get_student", lambda s: principals.get_student(s, addr))

    def is_owner(self, addr: str) -> bool:
        addr = principals.clean_address(addr)
        return self._run("is_owner", lambda s: principals.is_owner(s, addr))

    def is_admin(self, addr: str) -> bool:
        addr = principals.clean_address(addr)
        return self._run("is_admin", lambda s: principals.has_role(s, addr, Role.ADMIN))

    def is_verifier(self, addr: str) -> bool:
        addr = principals.clean_address(addr)
        return self._run("is_verifier", lambda s: principals.has_role(s, addr, Role.VERIFIER))

    def roles_of(self, addr: str) -> frozenset[Role]:
        addr = principals.clean_address(addr)
        return self._run("roles_of", lambda s: principals.roles_of(s, addr))

    # Document Store

    def submit_document(self, caller: str, doc_type: str, content_hash: str, metadata: str, student_id_number: str) -> int:
        caller = principals.clean_address(caller)

        def _op(s: Session) -> int:
            doc = documents.submit(
                s,
                caller,
                doc_type=doc_type,
                content_hash=content_hash,
                metadata=metadata,
                student_id_number=student_id_number,
                now=self._clock(),
            )
            return doc.id

        doc_id = self._run("submit_document", _op)
        logger.info("Document submitted (id=%s submitter=%s)", doc_id, caller)
        return doc_id

    def verify_document(self, caller: str, document_id: int) -> DocumentView:
        caller = principals.clean_address(caller)
        view = self._run(
            "verify_document",
            lambda s: documents.to_view(documents.verify(s, caller, document_id, now=self._clock())),
        )
        logger.info("Document verified (id=%s verifier=%s)", view.id, caller)
        return view

    def get_document(self, document_id: int) -> DocumentView:
        return self._run("get_document", lambda s: documents.get(s, document_id))

    def document_count(self) -> int:
        def _op(s: Session) -> int:
            state = principals.get_state(s)
            return state.document_count if state else 0

        return self._run("document_count", _op)

    def documents_submitted_by(self, addr: str) -> list[int]:
        addr = principals.clean_address(addr)
        return self._run("documents_submitted_by", lambda s: documents.submitted_by(s, addr))

    # Access Control Ledger

    def grant_access(self, caller: str, document_id: int, grantee: str) -> bool:
        caller = principals.clean_address(caller)
        grantee = principals.normalize_address(grantee)
        granted = self._run("grant_access", lambda s: access.grant(s, caller, document_id, grantee, now=self._clock()))
        if granted:
            logger.info("Access granted (doc=%s grantee=%s)", document_id, grantee)
        return granted

    def has_access(self, document_id: int, user: str) -> bool:
        user = principals.clean_address(user)
        if not user:
            return False
        return self._run("has_access", lambda s: access.has_access(s, document_id, user))

    def can_view(self, document_id: int, principal: str) -> bool:
        """
        Read policy for outer layers: submitter, admins, verifiers and grantees may view.
        Raises NotFound for unknown documents.
        """
        principal = principals.clean_address(principal)

        def _op(s: Session) -> bool:
            doc = documents.get_or_404(s, document_id)
            if doc.submitter == principal:
                return True
            if principals.has_role(s, principal, Role.ADMIN) or principals.has_role(s, principal, Role.VERIFIER):
                return True
            return access.has_access(s, doc.id, principal)

        return self._run("can_view", _op)

    # Audit

    def audit_trail(self, entity_type: str | None = None, entity_id: str | None = None) -> list[AuditEventView]:
        return self._run("audit_trail", lambda s: list_events(s, entity_type=entity_type, entity_id=entity_id))


def create_registry(database_url: str, *, env: str = "development", clock: Callable[[], datetime] | None = None) -> RegistryService:
    engine = make_engine(database_url, env=env)
    Base.metadata.create_all(bind=engine)
    return RegistryService(make_sessionmaker(engine), clock=clock)
