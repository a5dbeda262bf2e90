"""Error taxonomy shared by the service layer and the HTTP surface."""

from __future__ import annotations

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

# purpose: give every failure a stable machine-readable code plus a human message
# status: active


class TaskboardError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: str | None = None, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
        if code is not None:
            self.code = code

    def to_dict(self) -> dict:
        body = {"error": self.code, "message": self.message}
        if self.field:
            body["field"] = self.field
        return body


class ValidationFailed(TaskboardError):
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthRequired(TaskboardError):
    status_code = 401
    code = "AUTH_REQUIRED"


class AccessDenied(TaskboardError):
    status_code = 403
    code = "FORBIDDEN"


class NotFound(TaskboardError):
    status_code = 404
    code = "NOT_FOUND"


class Conflict(TaskboardError):
    status_code = 409
    code = "CONFLICT"


class AuditWriteFailed(TaskboardError):
    """The primary mutation committed but its audit entry could not be written."""

    status_code = 500
    code = "AUDIT_WRITE_FAILED"


class StoreUnavailable(TaskboardError):
    status_code = 503
    code = "STORE_UNAVAILABLE"


def board_not_found() -> NotFound:
    return NotFound("Board not found", code="BOARD_NOT_FOUND")


async def taskboard_error_handler(request: Request, exc: TaskboardError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    field = None
    message = "Invalid request"
    if errors:
        first = errors[0]
        loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or None
        message = first.get("msg", message)
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
    body = ValidationFailed(message, field=field).to_dict()
    body["details"] = jsonable_encoder(errors, custom_encoder={Exception: str})
    return JSONResponse(status_code=400, content=body)
