# app/routers/posts.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_current_user, get_optional_user
from app.models.user import User
from app.schemas.base import MessageResponse
from app.schemas.post import PostEnvelope, PostListResponse
from app.services.post import PostForm, PostService, serialize_post

router = APIRouter(
    prefix="/api/posts",
    tags=["Posts"],
    responses={404: {"description": "Not found"}},
)


def _listing(posts, pagination: dict, viewer: Optional[User]) -> dict:
    return {
        "success": True,
        "posts": [serialize_post(post, viewer) for post in posts],
        **pagination,
    }


# NOTE: static paths must be declared before /{post_id}


@router.get("", response_model=PostListResponse)
def get_posts(
    page: int = Query(1, ge=1),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None, max_length=200),
    category: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """
    Feed of live (non-expired) posts, newest first.
    `search` matches title, description, category and tags;
    `category` may be repeated to select several categories.
    """
    service = PostService(db)
    posts, pagination = service.get_posts(page, size, search, category)
    return _listing(posts, pagination, current_user)


@router.post("", response_model=PostEnvelope)
async def create_post(
    title: Optional[str] = Form(None),
    description: str = Form(""),
    category: str = Form("other"),
    tags: str = Form(""),
    is_anonymous: bool = Form(False, alias="isAnonymous"),
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    images: List[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a post from multipart form data. Expires after the post lifetime."""
    form = PostForm(
        title=title,
        description=description,
        category=category,
        tags=tags,
        is_anonymous=is_anonymous,
        latitude=latitude,
        longitude=longitude,
        images=images,
    )
    service = PostService(db)
    post = await service.create_post(form, current_user)
    return {
        "success": True,
        "message": "Post created successfully!",
        "post": serialize_post(post, current_user),
    }


@router.get("/user", response_model=PostListResponse)
def get_my_posts(
    page: int = Query(1, ge=1),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Posts created by the current user, expired ones included."""
    service = PostService(db)
    posts, pagination = service.get_user_posts(current_user.id, page, size)
    return _listing(posts, pagination, current_user)


@router.get("/bookmarked", response_model=PostListResponse)
def get_bookmarked_posts(
    page: int = Query(1, ge=1),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Live posts the current user has bookmarked."""
    service = PostService(db)
    posts, pagination = service.get_bookmarked_posts(current_user.id, page, size)
    return _listing(posts, pagination, current_user)


@router.get("/{post_id}", response_model=PostEnvelope)
def get_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    service = PostService(db)
    post = service.get_post_or_404(post_id)
    return {"success": True, "post": serialize_post(post, current_user)}


@router.put("/{post_id}", response_model=PostEnvelope)
async def update_post(
    post_id: int,
    title: Optional[str] = Form(None),
    description: str = Form(""),
    category: str = Form("other"),
    tags: str = Form(""),
    is_anonymous: bool = Form(False, alias="isAnonymous"),
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    delete_image_ids: str = Form("", alias="deleteImageIds"),
    images: List[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Replace a post's editable fields. Only the author or an admin can edit,
    and only until the post expires. Omitting the coordinates removes the
    location.
    """
    form = PostForm(
        title=title,
        description=description,
        category=category,
        tags=tags,
        is_anonymous=is_anonymous,
        latitude=latitude,
        longitude=longitude,
        images=images,
        delete_image_ids=delete_image_ids,
    )
    service = PostService(db)
    post = await service.update_post(post_id, form, current_user)
    return {
        "success": True,
        "message": "Post updated successfully",
        "post": serialize_post(post, current_user),
    }


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete a post with its images and location. Author or admin only."""
    service = PostService(db)
    service.delete_post(post_id, current_user)
    return {"success": True, "message": "Post deleted successfully"}
