from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .. import models
from ..errors import Conflict, StoreUnavailable

logger = logging.getLogger(__name__)

# purpose: one commit point per mutation translating store failures into the error taxonomy
# status: active


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def touch_board(board: models.Board) -> None:
    """Mark the board dirty so its version counter is checked and bumped on flush.

    Every change to the ordering of a board's columns or tasks goes through
    here, which makes the board row the serialization point for concurrent
    reorders: the second writer's flush matches no row and fails.
    """

    board.updated_at = _utcnow()


def check_version(entity, expected: int | None) -> None:
    if expected is not None and expected != entity.version:
        raise Conflict(
            f"{type(entity).__name__} was modified by someone else (expected version {expected}, found {entity.version})"
        )


def commit(db: Session) -> None:
    """Commit the current unit of work; nothing is retried on failure."""

    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning("Optimistic version check failed, rejecting write")
        raise Conflict("The board was modified concurrently, reload and retry")
    except OperationalError as exc:
        db.rollback()
        logger.error("Entity store unavailable: %s", exc)
        raise StoreUnavailable("Entity store is unavailable")
