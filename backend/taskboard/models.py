import uuid
import sqlalchemy as sa
from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Text,
    event,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, nullable=False)
    email_lower = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, default="")
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class Board(Base):
    __tablename__ = "boards"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    owner_email = Column(String, nullable=False)
    owner_email_lower = Column(String, nullable=False, index=True)
    # purpose: optimistic concurrency token, bumped by every structural mutation
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    columns = relationship(
        "BoardColumn",
        back_populates="board",
        cascade="all, delete-orphan",
        order_by="BoardColumn.position",
    )
    labels = relationship("Label", back_populates="board", cascade="all, delete-orphan")
    members = relationship(
        "BoardMember",
        back_populates="board",
        cascade="all, delete-orphan",
        order_by="BoardMember.joined_at",
    )

    __mapper_args__ = {"version_id_col": version}


class BoardColumn(Base):
    __tablename__ = "board_columns"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    board_id = Column(UUID(as_uuid=True), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    position = Column(Integer, nullable=False)
    is_done = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    board = relationship("Board", back_populates="columns")


class Label(Base):
    __tablename__ = "labels"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    board_id = Column(UUID(as_uuid=True), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)

    board = relationship("Board", back_populates="labels")


class BoardMember(Base):
    __tablename__ = "board_members"
    board_id = Column(UUID(as_uuid=True), ForeignKey("boards.id", ondelete="CASCADE"), primary_key=True)
    email_lower = Column(String, primary_key=True)
    email = Column(String, nullable=False)
    role = Column(String, default="member", nullable=False)
    joined_at = Column(DateTime(timezone=True), default=_utcnow)

    board = relationship("Board", back_populates="members")


class Task(Base):
    __tablename__ = "tasks"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    board_id = Column(UUID(as_uuid=True), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False)
    column_id = Column(UUID(as_uuid=True), ForeignKey("board_columns.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, default="", nullable=False)
    assignee_id = Column(String, nullable=True)
    due_date = Column(Date, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (sa.Index("ix_tasks_board_column", "board_id", "column_id"),)
    __mapper_args__ = {"version_id_col": version}


class BoardInvite(Base):
    __tablename__ = "board_invites"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    board_id = Column(UUID(as_uuid=True), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String, nullable=False)
    email_lower = Column(String, nullable=False, index=True)
    role = Column(String, default="member", nullable=False)
    invited_by_email = Column(String, nullable=False)
    invited_by_email_lower = Column(String, nullable=False, index=True)
    status = Column(String, default="pending", nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)


class AuditEntry(Base):
    __tablename__ = "audit_entries"
    # purpose: insertion order, breaks ties between entries sharing a timestamp
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(UUID(as_uuid=True), default=uuid.uuid4, unique=True, nullable=False)
    actor = Column(String, nullable=False)
    action = Column(String, nullable=False, index=True)
    entity = Column(String, nullable=False)
    entity_id = Column(String, nullable=False)
    board_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    details = Column(JSON, nullable=True)
    ts = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)


@event.listens_for(AuditEntry, "before_update")
def _reject_audit_update(mapper, connection, target):
    raise ValueError("Audit entries are append-only")


@event.listens_for(AuditEntry, "before_delete")
def _reject_audit_delete(mapper, connection, target):
    raise ValueError("Audit entries are append-only")
