from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth import get_current_user
from .. import models, schemas
from ..services import tasks as task_service

router = APIRouter(tags=["tasks"])


@router.get("/api/boards/{board_id}/tasks", response_model=List[schemas.TaskOut])
def list_tasks(board_id: UUID, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return task_service.list_tasks(db, user, board_id)


@router.post("/api/boards/{board_id}/tasks", response_model=schemas.TaskOut, status_code=201)
def create_task(
    board_id: UUID,
    task: schemas.TaskCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return task_service.create_task(db, user, board_id, task)


@router.get("/api/tasks/{task_id}", response_model=schemas.TaskOut)
def read_task(task_id: UUID, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return task_service.read_task(db, user, task_id)


@router.patch("/api/tasks/{task_id}", response_model=schemas.TaskOut)
def update_task(
    task_id: UUID,
    data: schemas.TaskUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return task_service.update_task(db, user, task_id, data)


@router.patch("/api/tasks/{task_id}/move", response_model=schemas.TaskOut)
def move_task(
    task_id: UUID,
    data: schemas.TaskMove,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return task_service.move_task(db, user, task_id, data)


@router.delete("/api/tasks/{task_id}", status_code=204)
def delete_task(task_id: UUID, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    task_service.delete_task(db, user, task_id)
    return Response(status_code=204)
