import math
import re
from datetime import date, datetime, timezone
from typing import Optional, Any, Dict, Literal, List
from pydantic import BaseModel, EmailStr, ConfigDict, Field, field_serializer, field_validator
from uuid import UUID

_DUE_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _required_text(value: Any, label: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(f"{label} is required and cannot be empty")
    return str(value).strip()


def _position(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("position must be a number")
    if not math.isfinite(value):
        raise ValueError("position must be a finite number")
    return value


def parse_due_date(value: Any) -> Optional[date]:
    """Accept ``YYYY-MM-DD`` naming a real calendar day; empty clears the date."""

    if value is None or isinstance(value, date) and not isinstance(value, datetime):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    if not _DUE_DATE_RE.match(raw):
        raise ValueError("due_date must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValueError("due_date is invalid")


def _as_utc(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    name: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserOut(BaseModel):
    id: UUID
    email: EmailStr
    name: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class BoardCreate(BaseModel):
    name: str

    _check_name = field_validator("name", mode="before")(lambda v: _required_text(v, "Board name"))


class BoardUpdate(BaseModel):
    name: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, v):
        if v is None:
            return v
        return _required_text(v, "Board name")


class ColumnOut(BaseModel):
    id: UUID
    board_id: UUID
    title: str
    position: int
    is_done: bool
    model_config = ConfigDict(from_attributes=True)


class LabelCreate(BaseModel):
    name: str

    _check_name = field_validator("name", mode="before")(lambda v: _required_text(v, "Label name"))


class LabelUpdate(BaseModel):
    name: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, v):
        if v is None:
            return v
        return _required_text(v, "Label name")


class LabelOut(BaseModel):
    id: UUID
    name: str
    model_config = ConfigDict(from_attributes=True)


class MemberOut(BaseModel):
    email: str
    email_lower: str
    role: str
    joined_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

    @field_serializer("joined_at")
    def _ser_joined(self, value):
        return _as_utc(value)


class OwnerOut(BaseModel):
    name: str = ""
    email: str
    email_lower: str


class MembersOut(BaseModel):
    owner: OwnerOut
    members: List[MemberOut]


class BoardOut(BaseModel):
    id: UUID
    name: str
    owner_email: str
    version: int
    columns: List[ColumnOut] = []
    labels: List[LabelOut] = []
    members: List[MemberOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", "updated_at")
    def _ser_ts(self, value):
        return _as_utc(value)


class BoardSummaryOut(BoardOut):
    members_count: int = 0
    tasks_count: int = 0
    done_count: int = 0
    last_activity_at: Optional[datetime] = None

    @field_serializer("last_activity_at")
    def _ser_activity(self, value):
        return _as_utc(value)


class ColumnCreate(BaseModel):
    board_id: UUID
    title: str
    is_done: bool = False
    position: Optional[float] = None

    _check_title = field_validator("title", mode="before")(lambda v: _required_text(v, "Column title"))
    _check_position = field_validator("position", mode="before")(_position)


class ColumnUpdate(BaseModel):
    title: Optional[str] = None
    position: Optional[float] = None
    is_done: Optional[bool] = None

    @field_validator("title", mode="before")
    @classmethod
    def _check_title(cls, v):
        if v is None:
            return v
        return _required_text(v, "Column title")

    _check_position = field_validator("position", mode="before")(_position)


class ColumnMove(BaseModel):
    position: float

    _check_position = field_validator("position", mode="before")(_position)


class TaskCreate(BaseModel):
    column_id: UUID
    title: str
    description: Optional[str] = None
    assignee_id: Optional[str] = None
    due_date: Optional[date] = None
    position: Optional[float] = None

    _check_title = field_validator("title", mode="before")(lambda v: _required_text(v, "title"))
    _check_due = field_validator("due_date", mode="before")(parse_due_date)
    _check_position = field_validator("position", mode="before")(_position)


class TaskUpdate(BaseModel):
    title: str
    description: Optional[str] = None
    assignee_id: Optional[str] = None
    due_date: Optional[date] = None
    version: Optional[int] = None

    _check_title = field_validator("title", mode="before")(lambda v: _required_text(v, "title"))
    _check_due = field_validator("due_date", mode="before")(parse_due_date)


class TaskMove(BaseModel):
    column_id: Optional[UUID] = None
    position: Optional[float] = None
    version: Optional[int] = None

    _check_position = field_validator("position", mode="before")(_position)


class TaskOut(BaseModel):
    id: UUID
    board_id: UUID
    column_id: UUID
    position: int
    title: str
    description: str = ""
    assignee_id: Optional[str] = None
    due_date: Optional[date] = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", "updated_at")
    def _ser_ts(self, value):
        return _as_utc(value)


class InviteCreate(BaseModel):
    email: str

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, v):
        email = str(v or "").strip()
        if not email or "@" not in email:
            raise ValueError("Valid email is required")
        return email


class InviteOut(BaseModel):
    id: UUID
    board_id: UUID
    email: str
    role: str
    invited_by_email: str
    status: Literal["pending", "accepted", "revoked"]
    created_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", "accepted_at", "revoked_at")
    def _ser_ts(self, value):
        return _as_utc(value)


class InviteResult(BaseModel):
    ok: bool = True
    board_id: Optional[UUID] = None


class AuditEntryCreate(BaseModel):
    action: str
    entity: str
    entity_id: str
    board_id: Optional[UUID] = None
    details: Optional[Dict[str, Any]] = None
    ts: Optional[datetime] = None

    @field_validator("action", "entity", "entity_id", mode="before")
    @classmethod
    def _check_required(cls, v, info):
        return _required_text(v, info.field_name)


class AuditEntryOut(BaseModel):
    id: UUID
    actor: str
    action: str
    entity: str
    entity_id: str
    board_id: Optional[UUID] = None
    details: Optional[Dict[str, Any]] = None
    ts: datetime
    model_config = ConfigDict(from_attributes=True)

    @field_serializer("ts")
    def _ser_ts(self, value):
        return _as_utc(value)


class AuditReportItem(BaseModel):
    action: str
    count: int
