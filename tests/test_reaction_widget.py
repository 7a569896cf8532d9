"""Tests for the optimistic reaction widget."""

import asyncio

import httpx
import pytest

from app.client.reaction_widget import (
    BOOKMARK_GROUP,
    REACTION_GROUP,
    ClientContext,
    Phase,
    ReactionView,
    ReactionWidget,
)

USER_ID = 7


def make_post(**overrides):
    post = {
        "id": 1,
        "likes": 3,
        "likedBy": [1, 2, 3],
        "dislikes": 1,
        "dislikedBy": [USER_ID],
        "bookmarkedBy": [],
    }
    post.update(overrides)
    return post


def make_context(handler, user_id=USER_ID, token="token", toasts=None):
    http = httpx.AsyncClient(
        base_url="http://api.test", transport=httpx.MockTransport(handler)
    )
    return ClientContext(
        http=http,
        user_id=user_id,
        token=token,
        notify=(toasts.append if toasts is not None else (lambda message: None)),
    )


def test_view_from_post():
    view = ReactionView.from_post(make_post(bookmarkedBy=[USER_ID]), USER_ID)

    assert view == ReactionView(
        liked=False, disliked=True, bookmarked=True, likes=3, dislikes=1
    )


def test_predicted_like_clears_dislike():
    view = ReactionView(disliked=True, likes=3, dislikes=1)

    assert view.toggled_like() == ReactionView(liked=True, likes=4, dislikes=0)


def test_predicted_counts_never_go_negative():
    view = ReactionView(liked=True, likes=0)

    assert view.toggled_like().likes == 0
    assert ReactionView(disliked=True, dislikes=0).toggled_like().dislikes == 0


@pytest.mark.asyncio
async def test_like_commits_server_values():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "success": True,
                "message": "Post liked",
                "post": {
                    "id": 1,
                    "likes": 9,
                    "likedBy": [1, 2, 3, 4, 5, 6, 8, 9, USER_ID],
                    "dislikes": 0,
                    "dislikedBy": [],
                },
                "hasLiked": True,
            },
        )

    widget = ReactionWidget(make_post(), make_context(handler))
    view = await widget.like()

    assert requests[0].method == "POST"
    assert requests[0].url.path == "/api/posts/1/like"
    assert requests[0].headers["Authorization"] == "Bearer token"
    # Server numbers win over the local prediction
    assert view == ReactionView(liked=True, disliked=False, likes=9, dislikes=0)
    assert widget.phases[REACTION_GROUP] == Phase.COMMITTED


@pytest.mark.asyncio
async def test_network_failure_rolls_back_and_notifies():
    toasts = []

    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    widget = ReactionWidget(make_post(), make_context(handler, toasts=toasts))
    before = widget.view
    view = await widget.like()

    assert view == before
    assert widget.phases[REACTION_GROUP] == Phase.ROLLED_BACK
    assert toasts == ["Failed to update like"]


@pytest.mark.asyncio
async def test_server_rejection_shows_generic_toast():
    toasts = []

    def handler(request):
        return httpx.Response(
            400, json={"success": False, "message": "This post has expired"}
        )

    widget = ReactionWidget(make_post(), make_context(handler, toasts=toasts))
    before = widget.view
    view = await widget.dislike()

    assert view == before
    assert toasts == ["Failed to update dislike"]


@pytest.mark.asyncio
async def test_signed_out_widget_is_inert():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={})

    widget = ReactionWidget(make_post(), make_context(handler, user_id=None, token=None))
    before = widget.view

    assert not widget.is_enabled(REACTION_GROUP)
    assert await widget.like() == before
    assert await widget.bookmark() == before
    assert requests == []


@pytest.mark.asyncio
async def test_reaction_group_ignores_taps_while_pending():
    release = asyncio.Event()
    requests = []

    async def handler(request):
        requests.append(request.url.path)
        await release.wait()
        return httpx.Response(
            200,
            json={
                "success": True,
                "post": {
                    "id": 1,
                    "likes": 4,
                    "likedBy": [1, 2, 3, USER_ID],
                    "dislikes": 0,
                    "dislikedBy": [],
                },
            },
        )

    widget = ReactionWidget(make_post(), make_context(handler))
    pending = asyncio.create_task(widget.like())
    while not requests:
        await asyncio.sleep(0)

    assert not widget.is_enabled(REACTION_GROUP)
    assert widget.is_enabled(BOOKMARK_GROUP)
    # Optimistic state is visible before the server answers
    assert widget.view.liked and not widget.view.disliked

    ignored = await widget.dislike()
    assert ignored.liked

    release.set()
    await pending

    assert requests == ["/api/posts/1/like"]
    assert widget.is_enabled(REACTION_GROUP)


@pytest.mark.asyncio
async def test_bookmark_rollback_keeps_reaction_state():
    def handler(request):
        return httpx.Response(500, json={"success": False, "message": "Failed to update bookmark. Please try again."})

    widget = ReactionWidget(make_post(), make_context(handler))
    view = await widget.bookmark()

    assert view.bookmarked is False
    assert view.disliked is True
    assert view.likes == 3
    assert widget.phases[BOOKMARK_GROUP] == Phase.ROLLED_BACK


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"success": True, "post": {"id": 1, "likes": None}},
        {"success": True, "post": "not a snapshot"},
        ["success", True],
        "ok",
    ],
)
async def test_malformed_success_body_rolls_back(body):
    toasts = []

    def handler(request):
        return httpx.Response(200, json=body)

    widget = ReactionWidget(make_post(), make_context(handler, toasts=toasts))
    before = widget.view
    view = await widget.like()

    assert view == before
    assert widget.phases[REACTION_GROUP] == Phase.ROLLED_BACK
    assert widget.is_enabled(REACTION_GROUP)
    assert toasts == ["Failed to update like"]


@pytest.mark.asyncio
async def test_failing_change_listener_does_not_leave_control_disabled():
    def handler(request):
        return httpx.Response(500, json={"success": False})

    def listener(view):
        raise RuntimeError("render failed")

    context = make_context(handler)
    context.on_change = listener
    widget = ReactionWidget(make_post(), context)
    before = widget.view

    with pytest.raises(RuntimeError):
        await widget.like()

    assert widget.phases[REACTION_GROUP] == Phase.ROLLED_BACK
    assert widget.is_enabled(REACTION_GROUP)
    assert widget.view == before
