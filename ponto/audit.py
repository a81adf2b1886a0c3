"""Audit trail for punch writes and admin changes."""

from __future__ import annotations

import uuid
from typing import Any

from flask_login import current_user

from ponto.extensions import db
from ponto.models import AuditLog, PunchRecord


PUNCH_ENTITY = "ponto_online"
SNAPSHOT_FIELDS = ("entry", "lunch_out", "lunch_in", "final_exit", "note")


def record_snapshot(record: PunchRecord) -> dict[str, Any]:
    snapshot: dict[str, Any] = {"day": record.day.isoformat(), "employee_name": record.employee_name}
    for field in SNAPSHOT_FIELDS:
        snapshot[field] = getattr(record, field)
    snapshot["day_mark"] = record.day_mark.value if record.day_mark is not None else None
    return snapshot


def _actor_id() -> uuid.UUID | None:
    if not current_user or not current_user.is_authenticated:
        return None
    try:
        return uuid.UUID(current_user.get_id())
    except ValueError:
        return None


def log_audit(
    action: str,
    entity_type: str,
    entity_id: uuid.UUID | None,
    payload: dict[str, Any] | None = None,
) -> AuditLog:
    entry = AuditLog(
        actor_user_id=_actor_id(),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        payload_json=payload or {},
    )
    db.session.add(entry)
    return entry


def log_punch(record: PunchRecord, stage: str) -> AuditLog:
    return log_audit(
        action=f"PUNCH_{stage.upper()}",
        entity_type=PUNCH_ENTITY,
        entity_id=record.id,
        payload={"day": record.day.isoformat(), stage: getattr(record, stage)},
    )


def log_record_change(
    action: str,
    record_id: uuid.UUID,
    *,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
) -> AuditLog:
    """Store row snapshots taken with ``record_snapshot`` around an admin change."""
    payload: dict[str, Any] = {}
    if before is not None:
        payload["before"] = before
    if after is not None:
        payload["after"] = after
    return log_audit(action=action, entity_type=PUNCH_ENTITY, entity_id=record_id, payload=payload)
