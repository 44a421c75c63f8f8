import json
from typing import Any

from sqlalchemy.orm import Session

from app.portal.actors import Actor
from app.portal.models import AuditEvent


def record_event(
    s: Session,
    *,
    actor: Actor | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    reason: str | None = None,
    metadata: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> AuditEvent:
    """
    Append-only audit event helper.
    """
    ev = AuditEvent(
        request_id=request_id,
        actor_id=actor.id if actor else None,
        actor_is_system=bool(actor and actor.is_system),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
        metadata_json=json.dumps(metadata, sort_keys=True, default=str) if metadata else None,
    )
    s.add(ev)
    return ev


def list_events(s: Session, *, entity_type: str, entity_id: str, limit: int = 100) -> list[AuditEvent]:
    """Newest-first trail for one entity (e.g. a page's edit/publish history)."""
    return (
        s.query(AuditEvent)
        .filter(AuditEvent.entity_type == entity_type, AuditEvent.entity_id == entity_id)
        .order_by(AuditEvent.id.desc())
        .limit(limit)
        .all()
    )
