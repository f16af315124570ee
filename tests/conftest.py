import base64
import json
import os
import time
import uuid
from datetime import timedelta

# Settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RUN_MIGRATIONS"] = "false"
os.environ["IDENTITY_JWT_SECRET"] = "test-identity-secret-that-is-long-enough-for-hs256"
os.environ["IDENTITY_JWKS_URL"] = ""
os.environ["IDENTITY_ISSUER"] = ""
os.environ["IDENTITY_AUDIENCE"] = ""
os.environ["WEBHOOK_SECRET"] = "whsec_" + base64.b64encode(b"test-webhook-signing-secret").decode()

import jwt
import pytest
from fastapi.testclient import TestClient

from todo_app.core import config
from todo_app.db.base import Base
from todo_app.db.session import SessionLocal, engine
from todo_app.main import app
from todo_app.models import ToDo, User
from todo_app.utils.dates import utcnow
from todo_app.utils.webhook_signature import sign


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def make_token(user_id: str, role: str = None, expires_in: int = 300) -> str:
    payload = {"sub": user_id, "exp": int(time.time()) + expires_in}
    if role:
        payload["metadata"] = {"role": role}
    return jwt.encode(payload, config.IDENTITY_JWT_SECRET, algorithm="HS256")


def auth_headers(user_id: str, role: str = None) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


def signed_webhook(event: dict, timestamp: int = None) -> tuple:
    """Body bytes and Svix headers for an identity-provider event."""
    body = json.dumps(event).encode()
    webhook_id = f"msg_{uuid.uuid4().hex}"
    ts = str(timestamp if timestamp is not None else int(time.time()))
    headers = {
        "svix-id": webhook_id,
        "svix-timestamp": ts,
        "svix-signature": sign(config.WEBHOOK_SECRET, webhook_id, ts, body),
        "content-type": "application/json",
    }
    return body, headers


def user_event(event_type: str, user_id: str, email: str = None) -> dict:
    data = {"id": user_id}
    if email:
        data["email_addresses"] = [
            {"id": "idn_other", "email_address": "other@example.com"},
            {"id": "idn_primary", "email_address": email},
        ]
        data["primary_email_address_id"] = "idn_primary"
    return {"type": event_type, "object": "event", "data": data}


def add_user(db, user_id: str = "user_a", email: str = None, **kwargs) -> User:
    user = User(id=user_id, email=email or f"{user_id}@example.com", **kwargs)
    db.add(user)
    db.commit()
    return user


def add_todos(db, user_id: str, titles, start=None) -> list:
    """Insert todos one minute apart, oldest first, so list order is deterministic."""
    start = start or utcnow() - timedelta(hours=1)
    todos = []
    for i, title in enumerate(titles):
        ts = start + timedelta(minutes=i)
        todo = ToDo(title=title, user_id=user_id, created_at=ts, updated_at=ts)
        db.add(todo)
        todos.append(todo)
    db.commit()
    return todos
