import functools
import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, declarative_base

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./taskboard.db")

if DATABASE_URL.startswith("sqlite"):
    sqlite_args = {"check_same_thread": False, "timeout": 30}
else:
    sqlite_args = {}

engine = create_engine(DATABASE_URL, connect_args=sqlite_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def retry_read(func):
    """Retry an idempotent read once when the store reports a transient failure.

    The wrapped callable must take the session as its first argument. Writes
    must never be wrapped: a second attempt could duplicate side effects.
    """

    @functools.wraps(func)
    def wrapper(db, *args, **kwargs):
        try:
            return func(db, *args, **kwargs)
        except OperationalError:
            logger.warning("Transient store failure in %s, retrying once", func.__name__)
            db.rollback()
            return func(db, *args, **kwargs)

    return wrapper
