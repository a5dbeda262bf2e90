from fastapi import APIRouter, Depends, Request
import os
from sqlalchemy.orm import Session
from ..database import get_db
from .. import models, schemas, audit
from ..auth import (
    create_access_token,
    get_current_user,
    get_password_hash,
    normalize_email,
    verify_password,
)
from ..errors import AuthRequired, Conflict
from ..services.store import commit
from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
testing = os.getenv("TESTING") == "1"

def rate_limit(limit: str):
    if testing:
        def wrapper(func):
            return func
        return wrapper
    return limiter.limit(limit)

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post("/register", response_model=schemas.Token, status_code=201)
@rate_limit("5/minute")
async def register(request: Request, user: schemas.UserCreate, db: Session = Depends(get_db)):
    email, email_lower = normalize_email(user.email)
    existing = db.query(models.User).filter(models.User.email_lower == email_lower).first()
    if existing:
        raise Conflict("Email already registered", code="EMAIL_TAKEN")
    db_user = models.User(
        email=email,
        email_lower=email_lower,
        name=(user.name or "").strip(),
        hashed_password=get_password_hash(user.password),
    )
    db.add(db_user)
    commit(db)
    db.refresh(db_user)
    audit.log_action(db, db_user.email, audit.USER_REGISTERED, "user", db_user.id)
    return schemas.Token(access_token=create_access_token(db_user))


@router.post("/login", response_model=schemas.Token)
@rate_limit("10/minute")
async def login(request: Request, user: schemas.LoginRequest, db: Session = Depends(get_db)):
    _, email_lower = normalize_email(user.email)
    db_user = db.query(models.User).filter(models.User.email_lower == email_lower).first()
    if not db_user or not verify_password(user.password, db_user.hashed_password):
        raise AuthRequired("Invalid credentials", code="INVALID_CREDENTIALS")
    return schemas.Token(access_token=create_access_token(db_user))


@router.get("/me", response_model=schemas.UserOut)
async def read_profile(current_user: models.User = Depends(get_current_user)):
    return current_user
