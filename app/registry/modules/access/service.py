from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from app.registry.audit import record_event
from app.registry.errors import NotDocumentOwner
from app.registry.modules.access.models import AccessGrant
from app.registry.modules.documents.service import get_or_404

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def grant(s: "Session", caller: str, document_id: int, grantee: str, *, now: datetime) -> bool:
    """
    Grant `grantee` access to a document. Only the submitter may grant.
    Returns False when the grant already existed.
    """
    doc = get_or_404(s, document_id)
    if doc.submitter != caller:
        raise NotDocumentOwner(f"Only the submitter of document {doc.id} can grant access.")

    if s.get(AccessGrant, (doc.id, grantee)) is not None:
        return False
    s.add(AccessGrant(document_id=doc.id, grantee=grantee, granted_by=caller, granted_at=now))
    record_event(
        s,
        actor=caller,
        action="access.grant",
        now=now,
        entity_type="Document",
        entity_id=str(doc.id),
        metadata={"grantee": grantee},
    )
    return True


def has_access(s: "Session", document_id: int, user: str) -> bool:
    # Never raises: malformed ids simply have no grants.
    try:
        doc_id = int(document_id)
    except (TypeError, ValueError):
        return False
    return s.get(AccessGrant, (doc_id, user)) is not None
