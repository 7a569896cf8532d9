import os
import tempfile

# Settings are read at import time; configure a throwaway environment first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CLEANUP_ENABLED"] = "false"
os.environ["DEBUG"] = "false"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="utvibe-storage-")
os.environ["JWT_SECRET"] = "test-secret"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, SessionLocal, engine
from app.core.hasher import PasswordHelper
from app.core.security import jwt_manager
from app.models import Post, User
from app.utils import mailer
from app.utils.datetime_utils import utcnow
from main import app

PASSWORD = "Secret#123"


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
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
    # No context manager: the lifespan (admin seeding, scheduler) is not run
    return TestClient(app)


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Capture outgoing email instead of talking to SMTP."""
    sent = []

    def fake_send_email(to_addr, subject, html_body, text_body=""):
        sent.append({"to": to_addr, "subject": subject, "text": text_body})

    monkeypatch.setattr(mailer, "send_email", fake_send_email)
    return sent


@pytest.fixture
def make_user(db):
    def _make_user(email="student@utexas.edu", name="Student", is_admin=False):
        user = User(
            email=email,
            name=name,
            hashed_password=PasswordHelper.hash_password(PASSWORD),
            is_admin=is_admin,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers():
    def _auth_headers(user) -> dict:
        return {"Authorization": f"Bearer {jwt_manager.create_access_token(user)}"}

    return _auth_headers


@pytest.fixture
def make_post(db):
    def _make_post(author, title="Free pizza at PCL", expires_in=timedelta(days=7), **fields):
        post = Post(
            author_id=author.id,
            title=title,
            description=fields.pop("description", "Second floor, while it lasts"),
            category=fields.pop("category", "food"),
            tags=fields.pop("tags", ["pizza"]),
            likes=0,
            dislikes=0,
            expires_at=utcnow() + expires_in,
            **fields,
        )
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    return _make_post
