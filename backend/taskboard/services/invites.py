"""Invitation workflow gating board membership."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..access import board_access, get_board
from ..database import retry_read
from ..errors import AccessDenied, Conflict, NotFound, board_not_found
from .store import commit

# purpose: pending -> accepted | revoked transitions; accepted and revoked are terminal
# status: active


def _pending_invite(db: Session, invite_id: uuid.UUID) -> models.BoardInvite:
    invite = db.get(models.BoardInvite, invite_id)
    if invite is None or invite.status != "pending":
        raise NotFound("Invite not found", code="INVITE_NOT_FOUND")
    return invite


def create_invite(
    db: Session, user: models.User, board_id: uuid.UUID, payload: schemas.InviteCreate
) -> models.BoardInvite:
    board = get_board(db, board_id, user, owner=True)
    email = payload.email
    email_lower = email.lower()

    invitee = db.query(models.User).filter(models.User.email_lower == email_lower).first()
    if invitee is None:
        raise NotFound("No such user registered", code="USER_NOT_FOUND")
    if board_access(board, email_lower).any:
        raise Conflict("User already has access to this board", code="ALREADY_MEMBER")
    existing = (
        db.query(models.BoardInvite)
        .filter(
            models.BoardInvite.board_id == board.id,
            models.BoardInvite.email_lower == email_lower,
            models.BoardInvite.status == "pending",
        )
        .first()
    )
    if existing is not None:
        raise Conflict("Pending invite already exists", code="INVITE_ALREADY_SENT")

    invite = models.BoardInvite(
        id=uuid.uuid4(),
        board_id=board.id,
        email=email,
        email_lower=email_lower,
        role="member",
        invited_by_email=user.email,
        invited_by_email_lower=user.email_lower,
        status="pending",
    )
    db.add(invite)
    commit(db)
    audit.log_action(
        db, user.email, audit.BOARD_INVITE_CREATED, "boardInvite", invite.id,
        board_id=board.id, details={"email": email, "role": "member"},
    )
    return invite


@retry_read
def list_invites(
    db: Session, user: models.User, kind: str = "incoming", status: str = "pending"
) -> list[models.BoardInvite]:
    query = db.query(models.BoardInvite)
    if kind == "outgoing":
        query = query.filter(models.BoardInvite.invited_by_email_lower == user.email_lower)
    else:
        query = query.filter(models.BoardInvite.email_lower == user.email_lower)
    if status != "all":
        query = query.filter(models.BoardInvite.status == status)
    return query.order_by(models.BoardInvite.created_at.desc()).all()


def accept_invite(db: Session, user: models.User, invite_id: uuid.UUID) -> dict:
    invite = _pending_invite(db, invite_id)
    if invite.email_lower != user.email_lower:
        raise AccessDenied("Invite does not belong to this user")
    board = db.get(models.Board, invite.board_id)
    if board is None:
        raise board_not_found()

    now = datetime.now(timezone.utc)
    board_id = board.id
    if not board_access(board, user.email).any:
        board.members.append(
            models.BoardMember(email=user.email, email_lower=user.email_lower, role="member", joined_at=now)
        )
    invite.status = "accepted"
    invite.accepted_at = now
    commit(db)
    audit.log_action(
        db, user.email, audit.BOARD_INVITE_ACCEPTED, "boardInvite", invite_id,
        board_id=board_id, details={"email": invite.email, "role": "member"},
    )
    return {"ok": True, "board_id": board_id}


def revoke_invite(db: Session, user: models.User, invite_id: uuid.UUID) -> dict:
    invite = _pending_invite(db, invite_id)
    board = db.get(models.Board, invite.board_id)
    if board is None:
        raise board_not_found()
    allowed = invite.invited_by_email_lower == user.email_lower or board_access(board, user.email).is_owner
    if not allowed:
        raise AccessDenied("Not allowed to revoke this invite")
    invite.status = "revoked"
    invite.revoked_at = datetime.now(timezone.utc)
    board_id = board.id
    commit(db)
    audit.log_action(
        db, user.email, audit.BOARD_INVITE_REVOKED, "boardInvite", invite_id,
        board_id=board_id, details={"email": invite.email},
    )
    return {"ok": True, "board_id": board_id}
