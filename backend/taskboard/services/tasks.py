"""Task operations of the mutation API.

Tasks are stored independently of their board and reference it together
with their column, so every structural change reloads the affected
column(s) and lets the ordering engine recompute positions for the whole
collection before anything is committed.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.orm import Session

from .. import audit, models, ordering, schemas
from ..access import get_board, get_task
from ..database import retry_read
from ..errors import ValidationFailed
from .store import check_version, commit, touch_board


def _column_tasks(db: Session, board_id: uuid.UUID, column_id: uuid.UUID) -> list[models.Task]:
    return (
        db.query(models.Task)
        .filter(models.Task.board_id == board_id, models.Task.column_id == column_id)
        .order_by(models.Task.position.asc(), models.Task.created_at.asc())
        .all()
    )


def _board_column(db: Session, board: models.Board, column_id: uuid.UUID | None) -> models.BoardColumn:
    column = db.get(models.BoardColumn, column_id) if column_id else None
    if column is None or column.board_id != board.id:
        raise ValidationFailed("Invalid column_id", field="column_id")
    return column


def _content(task: models.Task) -> dict[str, Any]:
    return {
        "title": task.title,
        "description": task.description,
        "assignee_id": task.assignee_id,
        "due_date": task.due_date.isoformat() if task.due_date else None,
    }


def _snapshot(task: models.Task) -> dict[str, Any]:
    data = _content(task)
    data.update(
        board_id=str(task.board_id),
        column_id=str(task.column_id),
        position=task.position,
    )
    return data


@retry_read
def list_tasks(db: Session, user: models.User, board_id: uuid.UUID) -> list[models.Task]:
    board = get_board(db, board_id, user)
    return (
        db.query(models.Task)
        .join(models.BoardColumn, models.BoardColumn.id == models.Task.column_id)
        .filter(models.Task.board_id == board.id)
        .order_by(models.BoardColumn.position.asc(), models.Task.position.asc())
        .all()
    )


@retry_read
def read_task(db: Session, user: models.User, task_id: uuid.UUID) -> models.Task:
    return get_task(db, task_id, user)


def create_task(
    db: Session, user: models.User, board_id: uuid.UUID, payload: schemas.TaskCreate
) -> models.Task:
    board = get_board(db, board_id, user)
    column = _board_column(db, board, payload.column_id)
    tasks = _column_tasks(db, board.id, column.id)
    task = models.Task(
        id=uuid.uuid4(),
        board_id=board.id,
        column_id=column.id,
        title=payload.title,
        description=payload.description or "",
        assignee_id=payload.assignee_id or None,
        due_date=payload.due_date,
        position=0,
    )
    ordering.insert(tasks, task, payload.position)
    db.add(task)
    touch_board(board)
    commit(db)
    audit.log_action(
        db, user.email, audit.TASK_CREATED, "task", task.id, board_id=board.id,
        details={
            "column_id": str(task.column_id),
            "position": task.position,
            "title": task.title,
            "due_date": task.due_date.isoformat() if task.due_date else None,
        },
    )
    return task


def update_task(
    db: Session, user: models.User, task_id: uuid.UUID, payload: schemas.TaskUpdate
) -> models.Task:
    """Replace task content; omitted optional fields are left untouched."""

    task = get_task(db, task_id, user)
    check_version(task, payload.version)
    fields = payload.model_fields_set
    before = _content(task)

    task.title = payload.title
    if "description" in fields:
        task.description = payload.description or ""
    if "assignee_id" in fields:
        task.assignee_id = payload.assignee_id or None
    if "due_date" in fields:
        task.due_date = payload.due_date

    after = _content(task)
    if after == before:
        return task
    board_id = task.board_id
    commit(db)
    audit.log_action(
        db, user.email, audit.TASK_UPDATED, "task", task_id,
        board_id=board_id, details=audit.changed_fields(before, after),
    )
    return task


def move_task(
    db: Session, user: models.User, task_id: uuid.UUID, payload: schemas.TaskMove
) -> models.Task:
    """Reorder a task within its column or move it to another column of its board."""

    task = get_task(db, task_id, user)
    check_version(task, payload.version)
    board = db.get(models.Board, task.board_id)
    target_column = _board_column(db, board, payload.column_id or task.column_id)

    source = _column_tasks(db, board.id, task.column_id)
    origin = {"column_id": str(task.column_id), "position": task.position}
    if target_column.id == task.column_id:
        involved = source
        positions_before = {t.id: t.position for t in involved}
        ordering.move(source, task, payload.position)
    else:
        target = _column_tasks(db, board.id, target_column.id)
        involved = source + target
        positions_before = {t.id: t.position for t in involved}
        ordering.move(source, task, payload.position, target)
        task.column_id = target_column.id

    destination = {"column_id": str(task.column_id), "position": task.position}
    if destination == origin and all(t.position == positions_before[t.id] for t in involved):
        return task

    touch_board(board)
    commit(db)
    audit.log_action(
        db, user.email, audit.TASK_MOVED, "task", task_id, board_id=board.id,
        details={"from": origin, "to": destination},
    )
    return task


def delete_task(db: Session, user: models.User, task_id: uuid.UUID) -> None:
    task = get_task(db, task_id, user)
    board = db.get(models.Board, task.board_id)
    snapshot = _snapshot(task)
    siblings = _column_tasks(db, board.id, task.column_id)
    ordering.remove(siblings, task)
    db.delete(task)
    touch_board(board)
    commit(db)
    audit.log_action(
        db, user.email, audit.TASK_DELETED, "task", task_id,
        board_id=board.id, details=snapshot,
    )
