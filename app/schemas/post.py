# app/schemas/post.py
from datetime import datetime
from typing import List, Optional

from app.schemas.base import CamelModel


class AuthorInfo(CamelModel):
    id: int
    name: str


class LocationResponse(CamelModel):
    latitude: float
    longitude: float


class PostResponse(CamelModel):
    id: int
    title: str
    description: str
    category: str
    tags: List[str]
    is_anonymous: bool

    # Parallel lists: images[i] is stored under image_ids[i]
    images: List[str]
    image_ids: List[str]
    location: Optional[LocationResponse] = None

    # Hidden for anonymous posts unless the viewer is the author or an admin
    author_id: Optional[int] = None
    author: Optional[AuthorInfo] = None

    likes: int
    liked_by: List[int]
    dislikes: int
    disliked_by: List[int]
    bookmarked_by: List[int]

    expires_at: datetime
    created_at: datetime
    updated_at: datetime
    is_expired: bool


class PostEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    post: PostResponse


class PostListResponse(CamelModel):
    success: bool = True
    posts: List[PostResponse]
    total: int
    page: int
    size: int
    total_pages: int
