"""Tests for the like / dislike / bookmark toggles."""

from datetime import timedelta

import pytest
from fastapi import HTTPException

from app.models import Post, PostBookmark, PostReaction
from app.services.reaction import ReactionService


def _post_row(db, post_id):
    db.expire_all()
    return db.query(Post).filter(Post.id == post_id).first()


@pytest.fixture
def alice(make_user):
    return make_user(email="alice@utexas.edu", name="Alice")


@pytest.fixture
def bob(make_user):
    return make_user(email="bob@utexas.edu", name="Bob")


@pytest.fixture
def post(make_post, make_user):
    author = make_user(email="author@utexas.edu", name="Author")
    return make_post(author)


def test_like_then_unlike(client, alice, post, auth_headers):
    headers = auth_headers(alice)

    response = client.post(f"/api/posts/{post.id}/like", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Post liked"
    assert body["hasLiked"] is True
    assert body["post"]["likes"] == 1
    assert body["post"]["likedBy"] == [alice.id]

    response = client.post(f"/api/posts/{post.id}/like", headers=headers)
    body = response.json()
    assert body["message"] == "Post unliked"
    assert body["hasLiked"] is False
    assert body["post"]["likes"] == 0
    assert body["post"]["likedBy"] == []


def test_dislike_then_undislike(client, alice, post, auth_headers):
    headers = auth_headers(alice)

    body = client.post(f"/api/posts/{post.id}/dislike", headers=headers).json()
    assert body["message"] == "Post disliked"
    assert body["hasDisliked"] is True
    assert body["post"]["dislikes"] == 1
    assert body["post"]["dislikedBy"] == [alice.id]

    body = client.post(f"/api/posts/{post.id}/dislike", headers=headers).json()
    assert body["message"] == "Post undisliked"
    assert body["hasDisliked"] is False
    assert body["post"]["dislikes"] == 0


def test_like_removes_existing_dislike(client, alice, post, auth_headers):
    headers = auth_headers(alice)
    client.post(f"/api/posts/{post.id}/dislike", headers=headers)

    body = client.post(f"/api/posts/{post.id}/like", headers=headers).json()

    assert body["post"]["likes"] == 1
    assert body["post"]["likedBy"] == [alice.id]
    assert body["post"]["dislikes"] == 0
    assert body["post"]["dislikedBy"] == []


def test_dislike_removes_existing_like(client, alice, post, auth_headers):
    headers = auth_headers(alice)
    client.post(f"/api/posts/{post.id}/like", headers=headers)

    body = client.post(f"/api/posts/{post.id}/dislike", headers=headers).json()

    assert body["post"]["likes"] == 0
    assert body["post"]["dislikes"] == 1
    assert body["post"]["dislikedBy"] == [alice.id]


def test_counters_track_reaction_rows(client, db, alice, bob, post, auth_headers):
    client.post(f"/api/posts/{post.id}/like", headers=auth_headers(alice))
    client.post(f"/api/posts/{post.id}/like", headers=auth_headers(bob))
    client.post(f"/api/posts/{post.id}/dislike", headers=auth_headers(bob))

    row = _post_row(db, post.id)
    reactions = db.query(PostReaction).filter(PostReaction.post_id == post.id).all()
    likes = [r for r in reactions if r.reaction_type == "like"]
    dislikes = [r for r in reactions if r.reaction_type == "dislike"]

    assert row.likes == len(likes) == 1
    assert row.dislikes == len(dislikes) == 1
    assert {r.user_id for r in likes}.isdisjoint({r.user_id for r in dislikes})


def test_two_users_like_independently(client, alice, bob, post, auth_headers):
    client.post(f"/api/posts/{post.id}/like", headers=auth_headers(alice))
    body = client.post(f"/api/posts/{post.id}/like", headers=auth_headers(bob)).json()

    assert body["post"]["likes"] == 2
    assert sorted(body["post"]["likedBy"]) == sorted([alice.id, bob.id])


def test_expired_post_rejects_reactions(client, db, alice, make_post, make_user, auth_headers):
    author = make_user(email="old@utexas.edu", name="Old")
    expired = make_post(author, expires_in=timedelta(days=-1))
    headers = auth_headers(alice)

    for action in ("like", "dislike", "bookmark"):
        response = client.post(f"/api/posts/{expired.id}/{action}", headers=headers)
        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "This post has expired"}

    row = _post_row(db, expired.id)
    assert row.likes == 0
    assert row.dislikes == 0
    assert db.query(PostReaction).count() == 0
    assert db.query(PostBookmark).count() == 0


@pytest.mark.parametrize("action", ["like", "dislike", "bookmark"])
def test_signed_out_toggle_is_rejected(client, db, post, action):
    response = client.post(f"/api/posts/{post.id}/{action}")

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Unauthorized. Please sign in."}
    assert db.query(PostReaction).count() == 0
    assert db.query(PostBookmark).count() == 0


def test_invalid_token_is_rejected(client, post):
    response = client.post(
        f"/api/posts/{post.id}/like", headers={"Authorization": "Bearer not-a-token"}
    )

    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.parametrize("action", ["like", "dislike", "bookmark"])
def test_unknown_post_returns_404(client, alice, action, auth_headers):
    response = client.post(f"/api/posts/99999/{action}", headers=auth_headers(alice))

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Post not found"}


def test_bookmark_toggle_leaves_reactions_alone(client, db, alice, post, auth_headers):
    headers = auth_headers(alice)
    client.post(f"/api/posts/{post.id}/like", headers=headers)

    body = client.post(f"/api/posts/{post.id}/bookmark", headers=headers).json()
    assert body["message"] == "Post bookmarked"
    assert body["hasBookmarked"] is True
    assert body["post"]["bookmarkedBy"] == [alice.id]

    row = _post_row(db, post.id)
    assert row.likes == 1
    assert row.dislikes == 0

    body = client.post(f"/api/posts/{post.id}/bookmark", headers=headers).json()
    assert body["message"] == "Post unbookmarked"
    assert body["hasBookmarked"] is False
    assert body["post"]["bookmarkedBy"] == []
    assert _post_row(db, post.id).likes == 1


def test_reaction_visible_in_post_detail(client, alice, post, auth_headers):
    client.post(f"/api/posts/{post.id}/like", headers=auth_headers(alice))
    client.post(f"/api/posts/{post.id}/bookmark", headers=auth_headers(alice))

    body = client.get(f"/api/posts/{post.id}").json()

    assert body["post"]["likes"] == 1
    assert body["post"]["likedBy"] == [alice.id]
    assert body["post"]["bookmarkedBy"] == [alice.id]


def test_dislike_and_bookmark_are_independent(client, db, alice, post, auth_headers):
    headers = auth_headers(alice)

    client.post(f"/api/posts/{post.id}/dislike", headers=headers)
    body = client.post(f"/api/posts/{post.id}/bookmark", headers=headers).json()
    assert body["post"]["bookmarkedBy"] == [alice.id]
    assert _post_row(db, post.id).dislikes == 1

    # Undisliking keeps the bookmark
    body = client.post(f"/api/posts/{post.id}/dislike", headers=headers).json()
    assert body["post"]["dislikes"] == 0
    assert db.query(PostBookmark).filter(PostBookmark.post_id == post.id).count() == 1

    detail = client.get(f"/api/posts/{post.id}").json()["post"]
    assert detail["bookmarkedBy"] == [alice.id]
    assert detail["dislikedBy"] == []


def test_bookmark_then_dislike_keeps_bookmark(client, alice, post, auth_headers):
    headers = auth_headers(alice)

    client.post(f"/api/posts/{post.id}/bookmark", headers=headers)
    body = client.post(f"/api/posts/{post.id}/dislike", headers=headers).json()

    assert body["post"]["dislikedBy"] == [alice.id]
    detail = client.get(f"/api/posts/{post.id}").json()["post"]
    assert detail["bookmarkedBy"] == [alice.id]
    assert detail["dislikes"] == 1


@pytest.mark.parametrize("times, liked", [(3, True), (4, False)])
def test_like_parity(client, alice, post, auth_headers, times, liked):
    headers = auth_headers(alice)

    for _ in range(times):
        body = client.post(f"/api/posts/{post.id}/like", headers=headers).json()

    assert body["hasLiked"] is liked
    assert (alice.id in body["post"]["likedBy"]) is liked
    assert body["post"]["likes"] == (1 if liked else 0)


def test_snapshot_of_vanished_post_is_not_found(db):
    with pytest.raises(HTTPException) as excinfo:
        ReactionService(db).reaction_snapshot(424242)

    assert excinfo.value.status_code == 404
