import logging
import os
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .database import retry_read
from .errors import AuditWriteFailed

logger = logging.getLogger(__name__)

AUDIT_WRITE_RETRIES = int(os.getenv("AUDIT_WRITE_RETRIES", "1"))

BOARD_CREATED = "BOARD_CREATED"
BOARD_UPDATED = "BOARD_UPDATED"
BOARD_DELETED = "BOARD_DELETED"
BOARD_RENORMALIZED = "BOARD_RENORMALIZED"
COLUMN_CREATED = "COLUMN_CREATED"
COLUMN_UPDATED = "COLUMN_UPDATED"
COLUMN_MOVED = "COLUMN_MOVED"
COLUMN_DELETED = "COLUMN_DELETED"
TASK_CREATED = "TASK_CREATED"
TASK_UPDATED = "TASK_UPDATED"
TASK_MOVED = "TASK_MOVED"
TASK_DELETED = "TASK_DELETED"
LABEL_CREATED = "LABEL_CREATED"
LABEL_UPDATED = "LABEL_UPDATED"
BOARD_MEMBER_REMOVED = "BOARD_MEMBER_REMOVED"
BOARD_INVITE_CREATED = "BOARD_INVITE_CREATED"
BOARD_INVITE_ACCEPTED = "BOARD_INVITE_ACCEPTED"
BOARD_INVITE_REVOKED = "BOARD_INVITE_REVOKED"
USER_REGISTERED = "USER_REGISTERED"


def _persist(db: Session, entry: models.AuditEntry) -> models.AuditEntry:
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def log_action(
    db: Session,
    actor: str,
    action: str,
    entity: str,
    entity_id: str | UUID,
    board_id: str | UUID | None = None,
    details: dict | None = None,
    ts: datetime | None = None,
) -> models.AuditEntry:
    """Append one immutable audit entry in its own commit.

    Callers commit their primary mutation first; a failure here therefore
    never rolls that mutation back. The write is attempted once more after a
    failure and then surfaced as ``AuditWriteFailed``.
    """

    stamp = ts or datetime.now(timezone.utc)
    stamp = stamp.replace(tzinfo=timezone.utc) if stamp.tzinfo is None else stamp.astimezone(timezone.utc)
    attempts = 1 + max(AUDIT_WRITE_RETRIES, 0)
    for attempt in range(1, attempts + 1):
        entry = models.AuditEntry(
            actor=actor,
            action=action,
            entity=entity,
            entity_id=str(entity_id),
            board_id=UUID(str(board_id)) if board_id else None,
            details=details,
            ts=stamp,
        )
        try:
            return _persist(db, entry)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning(
                "Audit append %s for %s %s failed (attempt %d/%d): %s",
                action, entity, entity_id, attempt, attempts, exc,
            )
    raise AuditWriteFailed(f"{action} was applied but could not be recorded in the audit trail")


def changed_fields(before: dict, after: dict) -> dict:
    """Restrict a before/after pair to the keys whose values differ."""

    keys = [k for k in after if before.get(k) != after.get(k)]
    return {
        "before": {k: before.get(k) for k in keys},
        "after": {k: after.get(k) for k in keys},
    }


@retry_read
def query_entries(
    db: Session,
    entity: str | None = None,
    entity_id: str | None = None,
    board_id: UUID | None = None,
    visible_board_ids: list[UUID] | None = None,
    actor: str | None = None,
    order: str = "desc",
):
    query = db.query(models.AuditEntry)
    if entity:
        query = query.filter(models.AuditEntry.entity == entity)
    if entity_id:
        query = query.filter(models.AuditEntry.entity_id == str(entity_id))
    if board_id:
        query = query.filter(models.AuditEntry.board_id == board_id)
    elif visible_board_ids is not None:
        clauses = [models.AuditEntry.board_id.in_(visible_board_ids)]
        if actor:
            clauses.append(models.AuditEntry.actor == actor)
        query = query.filter(or_(*clauses))
    if order == "asc":
        query = query.order_by(models.AuditEntry.ts.asc(), models.AuditEntry.seq.asc())
    else:
        query = query.order_by(models.AuditEntry.ts.desc(), models.AuditEntry.seq.desc())
    return query.all()


@retry_read
def generate_report(
    db: Session,
    start: datetime,
    end: datetime,
    board_id: UUID | None = None,
):
    query = db.query(models.AuditEntry).filter(
        models.AuditEntry.ts >= start,
        models.AuditEntry.ts <= end,
    )
    if board_id:
        query = query.filter(models.AuditEntry.board_id == board_id)
    rows = (
        query.with_entities(models.AuditEntry.action, func.count(models.AuditEntry.id))
        .group_by(models.AuditEntry.action)
        .all()
    )
    return [{"action": r[0], "count": r[1]} for r in rows]
