# app/models/post_reaction.py
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from app.core.database import Base

LIKE = "like"
DISLIKE = "dislike"


class PostReaction(Base):
    __tablename__ = "post_reactions"

    id = Column(Integer, primary_key=True, index=True)

    # Foreign Keys
    post_id = Column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Reaction Type: 'like' or 'dislike'
    reaction_type = Column(String(20), nullable=False)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # One row per (post, user): a user can never like and dislike the same post
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="unique_post_reaction"),
        CheckConstraint(
            "reaction_type IN ('like', 'dislike')", name="valid_reaction_type"
        ),
    )

    def __repr__(self):
        return f"<PostReaction(post_id={self.post_id}, user_id={self.user_id}, type='{self.reaction_type}')>"
