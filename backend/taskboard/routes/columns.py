from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth import get_current_user
from .. import models, schemas
from ..services import columns as column_service

router = APIRouter(tags=["columns"])


@router.get("/api/boards/{board_id}/columns", response_model=List[schemas.ColumnOut])
def list_columns(board_id: UUID, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return column_service.list_columns(db, user, board_id)


@router.post("/api/columns", response_model=schemas.ColumnOut, status_code=201)
def create_column(
    column: schemas.ColumnCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return column_service.create_column(db, user, column)


@router.patch("/api/columns/{column_id}", response_model=schemas.ColumnOut)
def update_column(
    column_id: UUID,
    data: schemas.ColumnUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return column_service.update_column(db, user, column_id, data)


@router.post("/api/columns/{column_id}/move", response_model=List[schemas.ColumnOut])
def move_column(
    column_id: UUID,
    data: schemas.ColumnMove,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return column_service.move_column(db, user, column_id, data.position)


@router.delete("/api/columns/{column_id}", status_code=204)
def delete_column(column_id: UUID, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    column_service.delete_column(db, user, column_id)
    return Response(status_code=204)
