# app/services/reaction.py
import logging
from typing import List, Tuple

from fastapi import HTTPException, status
from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from app.core.decorator import db_exception
from app.models.post import Post
from app.models.post_bookmark import PostBookmark
from app.models.post_reaction import DISLIKE, LIKE, PostReaction
from app.utils.datetime_utils import is_expired

logger = logging.getLogger(__name__)


class ReactionService:
    """
    Like / dislike / bookmark toggles.

    Each toggle runs as one transaction: the post row is locked, the caller's
    reaction row is inserted, retyped or deleted, and both counters are
    recomputed from the reaction rows in the same UPDATE. A user holds at most
    one reaction row per post, so liking evicts a dislike and vice versa.
    """

    def __init__(self, db: Session):
        self.db = db

    def _get_mutable_post(self, post_id: int) -> Post:
        post = (
            self.db.query(Post).filter(Post.id == post_id).with_for_update().first()
        )
        if not post:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Post not found"
            )
        if is_expired(post.expires_at):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This post has expired",
            )
        return post

    def _count_subquery(self, post_id: int, reaction_type: str):
        return (
            select(func.count(PostReaction.id))
            .where(
                and_(
                    PostReaction.post_id == post_id,
                    PostReaction.reaction_type == reaction_type,
                )
            )
            .scalar_subquery()
        )

    def _members(self, post_id: int, reaction_type: str) -> List[int]:
        rows = (
            self.db.query(PostReaction.user_id)
            .filter(
                PostReaction.post_id == post_id,
                PostReaction.reaction_type == reaction_type,
            )
            .order_by(PostReaction.id)
            .all()
        )
        return [row.user_id for row in rows]

    def reaction_snapshot(self, post_id: int) -> dict:
        post = self.db.query(Post).filter(Post.id == post_id).first()
        if not post:
            # Deleted by someone else right after the toggle committed
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Post not found"
            )
        return {
            "id": post.id,
            "likes": post.likes,
            "liked_by": self._members(post_id, LIKE),
            "dislikes": post.dislikes,
            "disliked_by": self._members(post_id, DISLIKE),
        }

    def bookmark_snapshot(self, post_id: int) -> dict:
        rows = (
            self.db.query(PostBookmark.user_id)
            .filter(PostBookmark.post_id == post_id)
            .order_by(PostBookmark.id)
            .all()
        )
        return {"id": post_id, "bookmarked_by": [row.user_id for row in rows]}

    def _toggle_reaction(
        self, post_id: int, user_id: int, reaction_type: str
    ) -> Tuple[dict, bool]:
        self._get_mutable_post(post_id)

        existing = (
            self.db.query(PostReaction)
            .filter(
                and_(
                    PostReaction.post_id == post_id,
                    PostReaction.user_id == user_id,
                )
            )
            .first()
        )

        if existing and existing.reaction_type == reaction_type:
            # Same reaction again: withdraw it
            self.db.delete(existing)
            active = False
        elif existing:
            # Opposite reaction: switch it over
            existing.reaction_type = reaction_type
            active = True
        else:
            self.db.add(
                PostReaction(
                    post_id=post_id, user_id=user_id, reaction_type=reaction_type
                )
            )
            active = True

        self.db.flush()

        # Counters always equal the number of rows of each type
        self.db.query(Post).filter(Post.id == post_id).update(
            {
                Post.likes: self._count_subquery(post_id, LIKE),
                Post.dislikes: self._count_subquery(post_id, DISLIKE),
            },
            synchronize_session=False,
        )
        self.db.commit()

        logger.info(
            f"User {user_id} {'added' if active else 'removed'} {reaction_type} on post {post_id}"
        )
        return self.reaction_snapshot(post_id), active

    @db_exception("Failed to update like. Please try again.")
    def toggle_like(self, post_id: int, user_id: int) -> Tuple[dict, bool]:
        """Like or unlike a post. Returns the snapshot and whether the user now likes it."""
        return self._toggle_reaction(post_id, user_id, LIKE)

    @db_exception("Failed to update dislike. Please try again.")
    def toggle_dislike(self, post_id: int, user_id: int) -> Tuple[dict, bool]:
        """Dislike or undislike a post. Returns the snapshot and the new state."""
        return self._toggle_reaction(post_id, user_id, DISLIKE)

    @db_exception("Failed to update bookmark. Please try again.")
    def toggle_bookmark(self, post_id: int, user_id: int) -> Tuple[dict, bool]:
        """Bookmark or unbookmark a post; never touches likes or dislikes."""
        self._get_mutable_post(post_id)

        existing = (
            self.db.query(PostBookmark)
            .filter(
                and_(
                    PostBookmark.post_id == post_id,
                    PostBookmark.user_id == user_id,
                )
            )
            .first()
        )

        if existing:
            self.db.delete(existing)
            active = False
        else:
            self.db.add(PostBookmark(post_id=post_id, user_id=user_id))
            active = True

        self.db.commit()

        logger.info(
            f"User {user_id} {'bookmarked' if active else 'unbookmarked'} post {post_id}"
        )
        return self.bookmark_snapshot(post_id), active
