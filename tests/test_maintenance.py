"""Tests for the expired post cleanup job, app bootstrap and health endpoints."""

from datetime import timedelta
from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError

from app.core.config import settings
from app.core.init import init_admin
from app.core.schedular import purge_expired_posts
from app.models import Post, PostImage, PostReaction, User
from app.services.post import PostService


def test_purge_removes_only_long_expired_posts(db, make_user, make_post):
    author = make_user()
    make_post(author, title="Live")
    make_post(author, title="Recently expired", expires_in=timedelta(days=-1))
    stale = make_post(author, title="Stale", expires_in=timedelta(days=-40))
    db.add(PostReaction(post_id=stale.id, user_id=author.id, reaction_type="like"))
    db.commit()

    deleted = purge_expired_posts(retention_days=30)

    assert deleted == 1
    db.expire_all()
    assert sorted(p.title for p in db.query(Post).all()) == ["Live", "Recently expired"]
    assert db.query(PostReaction).count() == 0


def test_init_admin_is_idempotent(db):
    init_admin(db)
    init_admin(db)

    admins = db.query(User).filter(User.is_admin.is_(True)).all()
    assert len(admins) == 1


def test_root_and_health(client):
    root = client.get("/").json()
    health = client.get("/health").json()

    assert root["status"] == "healthy"
    assert health["database"] == "healthy"


def test_purge_keeps_files_when_commit_fails(db, make_user, make_post, monkeypatch):
    author = make_user()
    stale = make_post(author, title="Stale", expires_in=timedelta(days=-40))
    path = Path(settings.upload_dir) / "posts" / "stale.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x89PNG")
    db.add(PostImage(post_id=stale.id, public_id="posts/stale.png", url="/storage/posts/stale.png"))
    db.commit()

    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", failing_commit)

    with pytest.raises(OperationalError):
        PostService(db).purge_expired(retention_days=30)

    assert path.exists()
    assert db.query(Post).filter(Post.id == stale.id).count() == 1


def test_purge_removes_files_of_deleted_posts(db, make_user, make_post):
    author = make_user()
    stale = make_post(author, title="Stale", expires_in=timedelta(days=-40))
    path = Path(settings.upload_dir) / "posts" / "purged.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x89PNG")
    db.add(PostImage(post_id=stale.id, public_id="posts/purged.png", url="/storage/posts/purged.png"))
    db.commit()

    assert purge_expired_posts(retention_days=30) == 1
    assert not path.exists()
