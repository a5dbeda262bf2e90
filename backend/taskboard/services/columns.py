"""Column operations of the mutation API."""

from __future__ import annotations

import uuid

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import audit, models, ordering, schemas
from ..access import get_board, get_column
from ..database import retry_read
from .store import commit, touch_board


def _snapshot(column: models.BoardColumn) -> dict:
    return {"title": column.title, "position": column.position, "is_done": bool(column.is_done)}


@retry_read
def list_columns(db: Session, user: models.User, board_id: uuid.UUID) -> list[models.BoardColumn]:
    board = get_board(db, board_id, user)
    return sorted(board.columns, key=lambda c: c.position)


def create_column(db: Session, user: models.User, payload: schemas.ColumnCreate) -> models.BoardColumn:
    board = get_board(db, payload.board_id, user, owner=True)
    columns = list(board.columns)
    column = models.BoardColumn(
        id=uuid.uuid4(),
        board_id=board.id,
        title=payload.title,
        is_done=payload.is_done,
        position=0,
    )
    ordering.insert(columns, column, payload.position)
    db.add(column)
    touch_board(board)
    commit(db)
    audit.log_action(
        db, user.email, audit.COLUMN_CREATED, "column", column.id,
        board_id=board.id, details=_snapshot(column),
    )
    return column


def update_column(
    db: Session, user: models.User, column_id: uuid.UUID, payload: schemas.ColumnUpdate
) -> models.BoardColumn:
    """Rename, reflag and/or reposition a column in one commit."""

    column = get_column(db, column_id, user, owner=True)
    board = column.board
    before = _snapshot(column)
    fields = payload.model_fields_set

    if "title" in fields and payload.title is not None:
        column.title = payload.title
    if "is_done" in fields and payload.is_done is not None:
        column.is_done = payload.is_done
    if "position" in fields and payload.position is not None:
        ordering.move(list(board.columns), column, payload.position)

    after = _snapshot(column)
    if after == before:
        return column
    board_id = board.id
    touch_board(board)
    commit(db)
    # a reposition is recorded like the move endpoint records it
    origin, target = before.pop("position"), after.pop("position")
    if after != before:
        audit.log_action(
            db, user.email, audit.COLUMN_UPDATED, "column", column_id,
            board_id=board_id, details=audit.changed_fields(before, after),
        )
    if target != origin:
        audit.log_action(
            db, user.email, audit.COLUMN_MOVED, "column", column_id, board_id=board_id,
            details={"from": {"position": origin}, "to": {"position": target}},
        )
    return column


def move_column(
    db: Session, user: models.User, column_id: uuid.UUID, position: float
) -> list[models.BoardColumn]:
    column = get_column(db, column_id, user, owner=True)
    board = column.board
    columns = list(board.columns)
    origin = column.position
    ordering.move(columns, column, position)
    if column.position == origin:
        return columns
    board_id = board.id
    target = column.position
    touch_board(board)
    commit(db)
    audit.log_action(
        db, user.email, audit.COLUMN_MOVED, "column", column_id, board_id=board_id,
        details={"from": {"position": origin}, "to": {"position": target}},
    )
    return sorted(db.get(models.Board, board_id).columns, key=lambda c: c.position)


def delete_column(db: Session, user: models.User, column_id: uuid.UUID) -> None:
    """Delete a column with its tasks and close the gap in the board's columns."""

    column = get_column(db, column_id, user, owner=True)
    board = column.board
    board_id = board.id
    task_count = (
        db.query(func.count(models.Task.id))
        .filter(models.Task.board_id == board_id, models.Task.column_id == column.id)
        .scalar()
    )
    snapshot = _snapshot(column)
    snapshot["task_count"] = task_count or 0

    ordering.remove(list(board.columns), column)
    db.query(models.Task).filter(
        models.Task.board_id == board_id, models.Task.column_id == column.id
    ).delete(synchronize_session=False)
    board.columns.remove(column)
    touch_board(board)
    commit(db)
    audit.log_action(
        db, user.email, audit.COLUMN_DELETED, "column", column_id,
        board_id=board_id, details=snapshot,
    )
