import os
os.environ["TESTING"] = "1"
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_taskboard.db")
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import sys
from pathlib import Path

import uuid

sys.path.append(str(Path(__file__).resolve().parents[2]))

from taskboard.main import app
from taskboard.database import Base, get_db

SQLALCHEMY_DATABASE_URL = os.environ["DATABASE_URL"]
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_auth_headers(client, *, email: str | None = None, password: str = "secret"):
    """Register (or log in) a user and return bearer headers plus the email used."""

    normalized_email = email or f"user-{uuid.uuid4()}@example.com"
    payload = {"email": normalized_email, "password": password}
    resp = client.post("/api/auth/register", json=payload)
    if resp.status_code == 201:
        data = resp.json()
    elif resp.status_code == 409:
        login_resp = client.post("/api/auth/login", json=payload)
        assert login_resp.status_code == 200, login_resp.text
        data = login_resp.json()
    else:
        raise AssertionError(f"Unexpected auth bootstrap failure for {normalized_email}: {resp.status_code} {resp.text}")
    return {"Authorization": f"Bearer {data['access_token']}"}, normalized_email


def get_headers(client, email: str | None = None):
    headers, _ = ensure_auth_headers(client, email=email)
    return headers


def make_board(client, headers, name="Board", columns=("Backlog", "Doing", "Done")):
    """Create a board with the given columns and return (board, {title: column})."""

    board = client.post("/api/boards", json={"name": name}, headers=headers)
    assert board.status_code == 201, board.text
    board = board.json()
    created = {}
    for title in columns:
        resp = client.post(
            "/api/columns",
            json={"board_id": board["id"], "title": title, "is_done": title == "Done"},
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
        created[title] = resp.json()
    return board, created


def make_task(client, headers, board_id, column_id, title, **extra):
    resp = client.post(
        f"/api/boards/{board_id}/tasks",
        json={"column_id": column_id, "title": title, **extra},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def column_order(client, headers, board_id, column_id):
    """Return [(title, position)] of a column's tasks in position order."""

    tasks = client.get(f"/api/boards/{board_id}/tasks", headers=headers).json()
    return [(t["title"], t["position"]) for t in tasks if t["column_id"] == column_id]


def invite_member(client, owner_headers, board_id):
    """Register a fresh user, invite them to the board and accept; return their headers."""

    member_headers, member_email = ensure_auth_headers(client)
    invite = client.post(
        f"/api/boards/{board_id}/invites", json={"email": member_email}, headers=owner_headers
    )
    assert invite.status_code == 201, invite.text
    accept = client.post(f"/api/invites/{invite.json()['id']}/accept", headers=member_headers)
    assert accept.status_code == 200, accept.text
    return member_headers
