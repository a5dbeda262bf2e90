"""Board lifecycle, labels and membership."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from .. import audit, models, ordering, schemas
from ..access import get_board
from ..database import retry_read
from ..errors import NotFound, ValidationFailed
from .store import commit, touch_board

logger = logging.getLogger(__name__)

# purpose: board-level operations of the mutation API (create, rename, delete, repair, labels, members)
# status: active


def create_board(db: Session, user: models.User, payload: schemas.BoardCreate) -> models.Board:
    board = models.Board(
        id=uuid.uuid4(),
        name=payload.name,
        owner_email=user.email,
        owner_email_lower=user.email_lower,
    )
    db.add(board)
    commit(db)
    audit.log_action(
        db, user.email, audit.BOARD_CREATED, "board", board.id,
        board_id=board.id, details={"name": board.name},
    )
    return board


@retry_read
def list_boards(db: Session, user: models.User) -> list[dict]:
    """Return the boards visible to the user, each with activity statistics."""

    boards = (
        db.query(models.Board)
        .outerjoin(models.BoardMember, models.BoardMember.board_id == models.Board.id)
        .filter(
            or_(
                models.Board.owner_email_lower == user.email_lower,
                models.BoardMember.email_lower == user.email_lower,
            )
        )
        .distinct()
        .order_by(models.Board.created_at.asc())
        .all()
    )
    return [_with_stats(db, board) for board in boards]


def _with_stats(db: Session, board: models.Board) -> dict:
    done_column_ids = [c.id for c in board.columns if c.is_done]
    tasks_count = db.query(func.count(models.Task.id)).filter(models.Task.board_id == board.id).scalar()
    done_count = 0
    if done_column_ids:
        done_count = (
            db.query(func.count(models.Task.id))
            .filter(models.Task.board_id == board.id, models.Task.column_id.in_(done_column_ids))
            .scalar()
        )
    last_task_update = (
        db.query(func.max(models.Task.updated_at)).filter(models.Task.board_id == board.id).scalar()
    )
    data = schemas.BoardOut.model_validate(board).model_dump()
    data.update(
        members_count=len(board.members),
        tasks_count=tasks_count or 0,
        done_count=done_count or 0,
        last_activity_at=last_task_update or board.updated_at,
    )
    return data


def rename_board(
    db: Session, user: models.User, board_id: uuid.UUID, payload: schemas.BoardUpdate
) -> models.Board:
    board = get_board(db, board_id, user, owner=True)
    if payload.name is None or payload.name == board.name:
        return board
    before = board.name
    board.name = payload.name
    commit(db)
    audit.log_action(
        db, user.email, audit.BOARD_UPDATED, "board", board.id, board_id=board.id,
        details={"before": {"name": before}, "after": {"name": board.name}},
    )
    return board


def delete_board(db: Session, user: models.User, board_id: uuid.UUID) -> None:
    """Delete a board together with its columns, tasks, labels, members and invites."""

    board = get_board(db, board_id, user, owner=True)
    task_count = db.query(func.count(models.Task.id)).filter(models.Task.board_id == board.id).scalar()
    snapshot = {
        "name": board.name,
        "owner_email": board.owner_email,
        "columns": [c.title for c in board.columns],
        "task_count": task_count or 0,
        "member_count": len(board.members),
    }
    deleted_id = board.id
    db.query(models.Task).filter(models.Task.board_id == deleted_id).delete(synchronize_session=False)
    db.query(models.BoardInvite).filter(models.BoardInvite.board_id == deleted_id).delete(
        synchronize_session=False
    )
    db.delete(board)
    commit(db)
    audit.log_action(
        db, user.email, audit.BOARD_DELETED, "board", deleted_id,
        board_id=deleted_id, details=snapshot,
    )


def renormalize_board(db: Session, user: models.User, board_id: uuid.UUID) -> models.Board:
    """Repair column and task positions of a board back to dense sequences."""

    board = get_board(db, board_id, user, owner=True)
    columns = list(board.columns)
    changed_columns = ordering.renormalize(columns)
    changed_tasks = 0
    for column in columns:
        tasks = (
            db.query(models.Task)
            .filter(models.Task.board_id == board.id, models.Task.column_id == column.id)
            .order_by(models.Task.position.asc(), models.Task.created_at.asc())
            .all()
        )
        changed_tasks += len(ordering.renormalize(tasks))
    if not changed_columns and not changed_tasks:
        return board
    touch_board(board)
    commit(db)
    logger.info("Renormalized board %s: %d columns, %d tasks", board_id, len(changed_columns), changed_tasks)
    audit.log_action(
        db, user.email, audit.BOARD_RENORMALIZED, "board", board.id, board_id=board.id,
        details={"columns_changed": len(changed_columns), "tasks_changed": changed_tasks},
    )
    return board


def list_labels(db: Session, user: models.User, board_id: uuid.UUID) -> Sequence[models.Label]:
    return get_board(db, board_id, user).labels


def create_label(
    db: Session, user: models.User, board_id: uuid.UUID, payload: schemas.LabelCreate
) -> models.Label:
    board = get_board(db, board_id, user, owner=True)
    label = models.Label(id=uuid.uuid4(), board_id=board.id, name=payload.name)
    db.add(label)
    commit(db)
    audit.log_action(
        db, user.email, audit.LABEL_CREATED, "label", label.id,
        board_id=board_id, details={"name": label.name},
    )
    return label


def update_label(
    db: Session,
    user: models.User,
    board_id: uuid.UUID,
    label_id: uuid.UUID,
    payload: schemas.LabelUpdate,
) -> models.Label:
    board = get_board(db, board_id, user, owner=True)
    label = next((l for l in board.labels if l.id == label_id), None)
    if label is None:
        raise NotFound("Label not found", code="LABEL_NOT_FOUND")
    if payload.name is None or payload.name == label.name:
        return label
    before = label.name
    label.name = payload.name
    commit(db)
    audit.log_action(
        db, user.email, audit.LABEL_UPDATED, "label", label.id, board_id=board_id,
        details={"before": {"name": before}, "after": {"name": label.name}},
    )
    return label


def list_members(db: Session, user: models.User, board_id: uuid.UUID) -> dict:
    board = get_board(db, board_id, user)
    owner = (
        db.query(models.User).filter(models.User.email_lower == board.owner_email_lower).first()
    )
    return {
        "owner": {
            "name": (owner.name if owner else "") or "",
            "email": owner.email if owner else board.owner_email,
            "email_lower": board.owner_email_lower,
        },
        "members": list(board.members),
    }


def remove_member(db: Session, user: models.User, board_id: uuid.UUID, email: str) -> None:
    board = get_board(db, board_id, user, owner=True)
    target_lower = (email or "").strip().lower()
    if not target_lower:
        raise ValidationFailed("email is required", field="email")
    if target_lower == board.owner_email_lower:
        raise ValidationFailed("Cannot remove owner", field="email")
    member = next((m for m in board.members if m.email_lower == target_lower), None)
    if member is None:
        raise NotFound("Member not found", code="MEMBER_NOT_FOUND")
    before_count = len(board.members)
    board.members.remove(member)
    now = datetime.now(timezone.utc)
    pending = (
        db.query(models.BoardInvite)
        .filter(
            models.BoardInvite.board_id == board.id,
            models.BoardInvite.email_lower == target_lower,
            models.BoardInvite.status == "pending",
        )
        .all()
    )
    for invite in pending:
        invite.status = "revoked"
        invite.revoked_at = now
    commit(db)
    audit.log_action(
        db, user.email, audit.BOARD_MEMBER_REMOVED, "boardMember", f"{board_id}:{target_lower}",
        board_id=board_id,
        details={"email_lower": target_lower, "before_count": before_count, "after_count": before_count - 1},
    )
