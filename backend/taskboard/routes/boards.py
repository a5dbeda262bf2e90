from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth import get_current_user
from .. import models, schemas
from ..access import get_board
from ..services import boards as board_service

router = APIRouter(prefix="/api/boards", tags=["boards"])


@router.get("", response_model=List[schemas.BoardSummaryOut])
def list_boards(db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return board_service.list_boards(db, user)


@router.post("", response_model=schemas.BoardOut, status_code=201)
def create_board(
    board: schemas.BoardCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return board_service.create_board(db, user, board)


@router.get("/{board_id}", response_model=schemas.BoardOut)
def read_board(board_id: UUID, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return get_board(db, board_id, user)


@router.patch("/{board_id}", response_model=schemas.BoardOut)
def rename_board(
    board_id: UUID,
    data: schemas.BoardUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return board_service.rename_board(db, user, board_id, data)


@router.delete("/{board_id}", status_code=204)
def delete_board(board_id: UUID, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    board_service.delete_board(db, user, board_id)
    return Response(status_code=204)


@router.post("/{board_id}/renormalize", response_model=schemas.BoardOut)
def renormalize_board(
    board_id: UUID, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)
):
    return board_service.renormalize_board(db, user, board_id)


@router.get("/{board_id}/labels", response_model=List[schemas.LabelOut])
def list_labels(board_id: UUID, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return board_service.list_labels(db, user, board_id)


@router.post("/{board_id}/labels", response_model=schemas.LabelOut, status_code=201)
def create_label(
    board_id: UUID,
    label: schemas.LabelCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return board_service.create_label(db, user, board_id, label)


@router.patch("/{board_id}/labels/{label_id}", response_model=schemas.LabelOut)
def update_label(
    board_id: UUID,
    label_id: UUID,
    label: schemas.LabelUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return board_service.update_label(db, user, board_id, label_id, label)


@router.get("/{board_id}/members", response_model=schemas.MembersOut)
def list_members(board_id: UUID, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return board_service.list_members(db, user, board_id)


@router.delete("/{board_id}/members/{email}", status_code=204)
def remove_member(
    board_id: UUID,
    email: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    board_service.remove_member(db, user, board_id, email)
    return Response(status_code=204)
