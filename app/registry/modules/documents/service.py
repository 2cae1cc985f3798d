from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from app.registry.audit import record_event
from app.registry.constants import Role
from app.registry.errors import AlreadyVerified, NotFound, PermissionDenied
from app.registry.modules.documents.models import Document, DocumentVerification, DocumentView
from app.registry.modules.principals.service import has_role, is_student, require_state

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def submit(
    s: "Session",
    submitter: str,
    *,
    doc_type: str,
    content_hash: str,
    metadata: str,
    student_id_number: str,
    now: datetime,
) -> Document:
    state = require_state(s)
    if not is_student(s, submitter):
        raise PermissionDenied("Only registered students can submit documents.")

    # Fields are stored exactly as given; duplicate hashes are accepted.
    state.document_count += 1
    doc = Document(
        id=state.document_count,
        doc_type=doc_type or "",
        content_hash=content_hash or "",
        metadata_text=metadata or "",
        submitter=submitter,
        student_id_number=student_id_number or "",
        created_at=now,
        verified=False,
        verified_at=None,
    )
    s.add(doc)
    s.flush()

    record_event(
        s,
        actor=submitter,
        action="doc.submit",
        now=now,
        entity_type="Document",
        entity_id=str(doc.id),
        metadata={"doc_type": doc.doc_type, "content_hash": doc.content_hash},
    )
    return doc


def get_or_404(s: "Session", document_id: int) -> Document:
    doc = s.get(Document, int(document_id))
    if doc is None:
        raise NotFound(f"Document {document_id} does not exist.")
    return doc


def verify(s: "Session", verifier: str, document_id: int, *, now: datetime) -> Document:
    require_state(s)
    if not has_role(s, verifier, Role.VERIFIER):
        raise PermissionDenied("Only verifiers can verify documents.")
    doc = get_or_404(s, document_id)
    if doc.verified:
        raise AlreadyVerified(f"Document {doc.id} is already verified.")

    doc.verified = True
    doc.verified_at = now
    doc.verifications.append(DocumentVerification(verifier=verifier, verified_at=now))

    record_event(s, actor=verifier, action="doc.verify", now=now, entity_type="Document", entity_id=str(doc.id))
    return doc


def to_view(doc: Document) -> DocumentView:
    return DocumentView(
        id=doc.id,
        doc_type=doc.doc_type,
        content_hash=doc.content_hash,
        metadata=doc.metadata_text,
        created_at=doc.created_at,
        submitter=doc.submitter,
        verified=doc.verified,
        verified_by=tuple(v.verifier for v in doc.verifications),
        verified_at=doc.verified_at,
        student_id_number=doc.student_id_number,
    )


def get(s: "Session", document_id: int) -> DocumentView:
    return to_view(get_or_404(s, document_id))


def submitted_by(s: "Session", addr: str) -> list[int]:
    rows = s.query(Document.id).filter(Document.submitter == addr).order_by(Document.id.asc()).all()
    return [r for (r,) in rows]
