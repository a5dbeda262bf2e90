from typing import Literal
from uuid import UUID
from datetime import datetime
from sqlalchemy import or_
from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends
from ..database import get_db
from ..auth import get_current_user
from ..access import get_board
from .. import models, schemas, audit

router = APIRouter(prefix="/api/audit", tags=["audit"])


def _visible_board_ids(db: Session, user: models.User) -> list[UUID]:
    rows = (
        db.query(models.Board.id)
        .outerjoin(models.BoardMember, models.BoardMember.board_id == models.Board.id)
        .filter(
            or_(
                models.Board.owner_email_lower == user.email_lower,
                models.BoardMember.email_lower == user.email_lower,
            )
        )
        .distinct()
        .all()
    )
    return [row[0] for row in rows]


@router.post("", response_model=schemas.AuditEntryOut, status_code=201)
async def append_entry(
    entry: schemas.AuditEntryCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    if entry.board_id:
        get_board(db, entry.board_id, current_user)
    return audit.log_action(
        db,
        current_user.email,
        entry.action,
        entry.entity,
        entry.entity_id,
        board_id=entry.board_id,
        details=entry.details,
        ts=entry.ts,
    )


@router.get("", response_model=list[schemas.AuditEntryOut])
async def list_entries(
    entity: str | None = None,
    entity_id: str | None = None,
    board_id: UUID | None = None,
    order: Literal["desc", "asc"] = "desc",
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    if board_id:
        get_board(db, board_id, current_user)
        return audit.query_entries(db, entity, entity_id, board_id=board_id, order=order)
    return audit.query_entries(
        db,
        entity,
        entity_id,
        visible_board_ids=_visible_board_ids(db, current_user),
        actor=current_user.email,
        order=order,
    )


@router.get("/report", response_model=list[schemas.AuditReportItem])
async def audit_report(
    board_id: UUID,
    start: datetime,
    end: datetime,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    get_board(db, board_id, current_user)
    return audit.generate_report(db, start, end, board_id)
