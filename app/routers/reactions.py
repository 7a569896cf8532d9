# app/routers/reactions.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import get_current_user
from app.models.user import User
from app.schemas.reaction import (
    BookmarkToggleResponse,
    DislikeToggleResponse,
    LikeToggleResponse,
)
from app.services.reaction import ReactionService

router = APIRouter(
    prefix="/api/posts",
    tags=["Reactions"],
    responses={
        401: {"description": "Not signed in"},
        404: {"description": "Post not found"},
        400: {"description": "Post has expired"},
    },
)


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
def toggle_like(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Like or unlike a post.
    Liking a post the user had disliked removes the dislike.
    """
    snapshot, has_liked = ReactionService(db).toggle_like(post_id, current_user.id)
    return {
        "success": True,
        "message": "Post liked" if has_liked else "Post unliked",
        "post": snapshot,
        "has_liked": has_liked,
    }


@router.post("/{post_id}/dislike", response_model=DislikeToggleResponse)
def toggle_dislike(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Dislike or undislike a post.
    Disliking a post the user had liked removes the like.
    """
    snapshot, has_disliked = ReactionService(db).toggle_dislike(
        post_id, current_user.id
    )
    return {
        "success": True,
        "message": "Post disliked" if has_disliked else "Post undisliked",
        "post": snapshot,
        "has_disliked": has_disliked,
    }


@router.post("/{post_id}/bookmark", response_model=BookmarkToggleResponse)
def toggle_bookmark(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Bookmark or unbookmark a post."""
    snapshot, has_bookmarked = ReactionService(db).toggle_bookmark(
        post_id, current_user.id
    )
    return {
        "success": True,
        "message": "Post bookmarked" if has_bookmarked else "Post unbookmarked",
        "post": snapshot,
        "has_bookmarked": has_bookmarked,
    }
