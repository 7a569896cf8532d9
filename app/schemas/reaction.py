# app/schemas/reaction.py
from typing import List

from app.schemas.base import CamelModel


class ReactionSnapshot(CamelModel):
    """Canonical like/dislike state of a post after a toggle."""

    id: int
    likes: int
    liked_by: List[int]
    dislikes: int
    disliked_by: List[int]


class BookmarkSnapshot(CamelModel):
    id: int
    bookmarked_by: List[int]


class LikeToggleResponse(CamelModel):
    success: bool = True
    message: str
    post: ReactionSnapshot
    has_liked: bool


class DislikeToggleResponse(CamelModel):
    success: bool = True
    message: str
    post: ReactionSnapshot
    has_disliked: bool


class BookmarkToggleResponse(CamelModel):
    success: bool = True
    message: str
    post: BookmarkSnapshot
    has_bookmarked: bool
