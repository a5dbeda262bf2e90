from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from . import models
from .errors import AccessDenied, NotFound, board_not_found

# purpose: centralize board visibility and role checks consumed by every mutation
# status: active


@dataclass(frozen=True)
class BoardAccess:
    """Describe the actor's standing on one board."""

    is_owner: bool
    is_member: bool

    @property
    def any(self) -> bool:
        return self.is_owner or self.is_member


def board_access(board: models.Board, email: str) -> BoardAccess:
    email_lower = (email or "").strip().lower()
    if not email_lower:
        return BoardAccess(is_owner=False, is_member=False)
    is_owner = (board.owner_email_lower or "").lower() == email_lower
    is_member = any((m.email_lower or "").lower() == email_lower for m in board.members)
    return BoardAccess(is_owner=is_owner, is_member=is_member)


def require_access(board: models.Board | None, user: models.User) -> BoardAccess:
    """Return the actor's access, masking invisible boards as missing."""

    if board is None:
        raise board_not_found()
    access = board_access(board, user.email)
    if not access.any:
        raise board_not_found()
    return access


def require_owner(board: models.Board | None, user: models.User) -> BoardAccess:
    access = require_access(board, user)
    if not access.is_owner:
        raise AccessDenied("Only owner can perform this action")
    return access


def get_board(db: Session, board_id: UUID, user: models.User, *, owner: bool = False) -> models.Board:
    board = db.get(models.Board, board_id)
    if owner:
        require_owner(board, user)
    else:
        require_access(board, user)
    return board


def get_column(db: Session, column_id: UUID, user: models.User, *, owner: bool = False) -> models.BoardColumn:
    column = db.get(models.BoardColumn, column_id)
    if column is None:
        raise NotFound("Column not found", code="COLUMN_NOT_FOUND")
    try:
        get_board(db, column.board_id, user, owner=owner)
    except NotFound:
        # a column on an invisible board is as missing as the board itself
        raise NotFound("Column not found", code="COLUMN_NOT_FOUND")
    return column


def get_task(db: Session, task_id: UUID, user: models.User) -> models.Task:
    task = db.get(models.Task, task_id)
    if task is None:
        raise NotFound("Task not found", code="TASK_NOT_FOUND")
    try:
        get_board(db, task.board_id, user)
    except NotFound:
        raise NotFound("Task not found", code="TASK_NOT_FOUND")
    return task
