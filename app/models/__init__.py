"""
Models package initialization
Import all models and setup relationships
"""

from .email_verification import EmailVerification
from .location import Location
from .post import Post
from .post_bookmark import PostBookmark
from .post_image import PostImage
from .post_reaction import PostReaction

# Import and setup relationships
from .relations import setup_relationships
from .user import User

# Setup all relationships after models are imported
setup_relationships()

# Make models available at package level
__all__ = [
    "EmailVerification",
    "Location",
    "Post",
    "PostBookmark",
    "PostImage",
    "PostReaction",
    "User",
]
