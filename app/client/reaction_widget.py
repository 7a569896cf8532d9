# app/client/reaction_widget.py
"""
Optimistic reaction controls for a single post card.

The widget flips its local state the moment the user taps, sends the toggle
request, then either adopts the server's numbers or rolls back to the state
it had before the tap. Like and dislike share one control group: while
either request is in flight both controls ignore input. Bookmark has its
own group.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

REACTION_GROUP = "reaction"
BOOKMARK_GROUP = "bookmark"

# Fields each group owns; a rollback restores only these
GROUP_FIELDS = {
    REACTION_GROUP: ("liked", "disliked", "likes", "dislikes"),
    BOOKMARK_GROUP: ("bookmarked",),
}


class ToggleRejected(Exception):
    """The server answered but refused the toggle."""


class Phase(Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class ReactionView:
    """What the card shows for the signed-in user."""

    liked: bool = False
    disliked: bool = False
    bookmarked: bool = False
    likes: int = 0
    dislikes: int = 0

    @classmethod
    def from_post(cls, post: Dict[str, Any], user_id: Optional[int]) -> "ReactionView":
        liked_by = post.get("likedBy") or []
        disliked_by = post.get("dislikedBy") or []
        bookmarked_by = post.get("bookmarkedBy") or []
        return cls(
            liked=user_id is not None and user_id in liked_by,
            disliked=user_id is not None and user_id in disliked_by,
            bookmarked=user_id is not None and user_id in bookmarked_by,
            likes=int(post.get("likes", len(liked_by))),
            dislikes=int(post.get("dislikes", len(disliked_by))),
        )

    def toggled_like(self) -> "ReactionView":
        if self.liked:
            return replace(self, liked=False, likes=max(0, self.likes - 1))
        return replace(
            self,
            liked=True,
            likes=self.likes + 1,
            disliked=False,
            dislikes=max(0, self.dislikes - 1) if self.disliked else self.dislikes,
        )

    def toggled_dislike(self) -> "ReactionView":
        if self.disliked:
            return replace(self, disliked=False, dislikes=max(0, self.dislikes - 1))
        return replace(
            self,
            disliked=True,
            dislikes=self.dislikes + 1,
            liked=False,
            likes=max(0, self.likes - 1) if self.liked else self.likes,
        )

    def toggled_bookmark(self) -> "ReactionView":
        return replace(self, bookmarked=not self.bookmarked)


@dataclass
class ClientContext:
    """
    Session-level collaborators shared by every card.

    `http` is expected to carry the API base URL. `token` is the bearer token
    of the signed-in user; without a user the widget is inert.
    """

    http: httpx.AsyncClient
    user_id: Optional[int] = None
    token: Optional[str] = None
    notify: Callable[[str], None] = lambda message: None
    on_change: Optional[Callable[["ReactionView"], None]] = None

    @property
    def signed_in(self) -> bool:
        return self.user_id is not None and bool(self.token)


class ReactionWidget:
    def __init__(self, post: Dict[str, Any], context: ClientContext):
        self.post_id = post["id"]
        self.context = context
        self.view = ReactionView.from_post(post, context.user_id)
        self.phases = {REACTION_GROUP: Phase.IDLE, BOOKMARK_GROUP: Phase.IDLE}

    def is_enabled(self, group: str) -> bool:
        return self.context.signed_in and self.phases[group] != Phase.PENDING

    async def like(self) -> ReactionView:
        return await self._toggle(
            REACTION_GROUP, "like", self.view.toggled_like(), "Failed to update like"
        )

    async def dislike(self) -> ReactionView:
        return await self._toggle(
            REACTION_GROUP,
            "dislike",
            self.view.toggled_dislike(),
            "Failed to update dislike",
        )

    async def bookmark(self) -> ReactionView:
        return await self._toggle(
            BOOKMARK_GROUP,
            "bookmark",
            self.view.toggled_bookmark(),
            "Failed to update bookmark",
        )

    def _set_view(self, view: ReactionView) -> None:
        self.view = view
        if self.context.on_change:
            self.context.on_change(view)

    def _reconcile(self, group: str, post: Dict[str, Any]) -> ReactionView:
        """Adopt the server's values for the fields this group owns."""
        server = ReactionView.from_post(post, self.context.user_id)
        fields = {name: getattr(server, name) for name in GROUP_FIELDS[group]}
        return replace(self.view, **fields)

    def _rollback(self, group: str, previous: ReactionView) -> ReactionView:
        fields = {name: getattr(previous, name) for name in GROUP_FIELDS[group]}
        return replace(self.view, **fields)

    async def _toggle(
        self, group: str, action: str, predicted: ReactionView, toast: str
    ) -> ReactionView:
        if not self.is_enabled(group):
            return self.view

        previous = self.view
        self.phases[group] = Phase.PENDING

        try:
            self._set_view(predicted)
            response = await self.context.http.post(
                f"/api/posts/{self.post_id}/{action}",
                headers={"Authorization": f"Bearer {self.context.token}"},
            )
            try:
                body = response.json()
            except ValueError:
                body = None
            if not isinstance(body, dict):
                raise ToggleRejected(f"unexpected response body ({response.status_code})")
            if response.is_error or not body.get("success"):
                raise ToggleRejected(body.get("message") or response.status_code)
            reconciled = self._reconcile(group, body["post"])
            self.phases[group] = Phase.COMMITTED
            self._set_view(reconciled)
        except (
            httpx.HTTPError,
            ToggleRejected,
            KeyError,
            TypeError,
            ValueError,
            AttributeError,
        ) as e:
            logger.warning(f"{action} on post {self.post_id} failed: {e}")
            self.phases[group] = Phase.ROLLED_BACK
            self.context.notify(toast)
            self._set_view(self._rollback(group, previous))
        finally:
            # The control is re-enabled whatever happened above
            if self.phases[group] == Phase.PENDING:
                self.phases[group] = Phase.ROLLED_BACK
                self.view = self._rollback(group, previous)

        return self.view
