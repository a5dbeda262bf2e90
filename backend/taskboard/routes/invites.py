from typing import List, Literal
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth import get_current_user
from .. import models, schemas
from ..services import invites as invite_service

router = APIRouter(tags=["invites"])


@router.post("/api/boards/{board_id}/invites", response_model=schemas.InviteOut, status_code=201)
def create_invite(
    board_id: UUID,
    invite: schemas.InviteCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return invite_service.create_invite(db, user, board_id, invite)


@router.get("/api/invites", response_model=List[schemas.InviteOut])
def list_invites(
    type: Literal["incoming", "outgoing"] = "incoming",
    status: Literal["pending", "accepted", "revoked", "all"] = "pending",
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return invite_service.list_invites(db, user, type, status)


@router.post("/api/invites/{invite_id}/accept", response_model=schemas.InviteResult)
def accept_invite(invite_id: UUID, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return invite_service.accept_invite(db, user, invite_id)


@router.post("/api/invites/{invite_id}/revoke", response_model=schemas.InviteResult)
def revoke_invite(invite_id: UUID, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return invite_service.revoke_invite(db, user, invite_id)
