import json
from datetime import datetime
from typing import Any

from flask import g, has_app_context
from sqlalchemy.orm import Session

from app.registry.models import AuditEvent, AuditEventView


def record_event(
    s: Session,
    *,
    actor: str | None,
    action: str,
    now: datetime,
    entity_type: str | None = None,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> AuditEvent:
    """
    Append-only audit event helper.
    """
    rid = request_id
    if rid is None and has_app_context():
        rid = getattr(g, "request_id", None)
    ev = AuditEvent(
        created_at=now,
        request_id=rid,
        actor=actor,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata_json=json.dumps(metadata, sort_keys=True) if metadata else None,
    )
    s.add(ev)
    return ev


def list_events(s: Session, *, entity_type: str | None = None, entity_id: str | None = None) -> list[AuditEventView]:
    q = s.query(AuditEvent)
    if entity_type is not None:
        q = q.filter(AuditEvent.entity_type == entity_type)
    if entity_id is not None:
        q = q.filter(AuditEvent.entity_id == entity_id)
    return [
        AuditEventView(
            id=e.id,
            created_at=e.created_at,
            request_id=e.request_id,
            actor=e.actor,
            action=e.action,
            entity_type=e.entity_type,
            entity_id=e.entity_id,
            metadata_json=e.metadata_json,
        )
        for e in q.order_by(AuditEvent.id.asc()).all()
    ]
