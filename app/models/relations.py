# app/models/relations.py

from sqlalchemy.orm import relationship

from .location import Location
from .post import Post
from .post_bookmark import PostBookmark
from .post_image import PostImage
from .post_reaction import PostReaction
from .user import User


def setup_relationships():
    """
    Configure all SQLAlchemy relationships between models.
    """

    # 1. User to Posts (One-to-Many)
    User.posts = relationship(
        "Post",
        back_populates="author",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    Post.author = relationship("User", back_populates="posts")

    # 2. Post to Images (One-to-Many)
    Post.images = relationship(
        "PostImage",
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="PostImage.position",
        passive_deletes=True,
    )
    PostImage.post = relationship("Post", back_populates="images")

    # 3. Post to Location (One-to-One)
    Post.location = relationship(
        "Location",
        back_populates="post",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    Location.post = relationship("Post", back_populates="location")

    # 4. Post to Reactions (One-to-Many)
    Post.reactions = relationship(
        "PostReaction",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    PostReaction.post = relationship("Post", back_populates="reactions")
    PostReaction.user = relationship("User")

    # 5. Post to Bookmarks (One-to-Many)
    Post.bookmarks = relationship(
        "PostBookmark",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    PostBookmark.post = relationship("Post", back_populates="bookmarks")
    PostBookmark.user = relationship("User")
