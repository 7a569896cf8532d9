# app/services/post.py
import logging
import math
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional, Tuple

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import String, and_, cast, or_
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.models.location import Location
from app.models.post import Post
from app.models.post_bookmark import PostBookmark
from app.models.post_image import PostImage
from app.models.post_reaction import DISLIKE, LIKE
from app.models.user import User
from app.utils.datetime_utils import days_from_now, ensure_utc, is_expired, utcnow
from app.utils.file_upload import StoredImage, file_upload_service

logger = logging.getLogger(__name__)


@dataclass
class PostForm:
    """Fields submitted by the create/edit post form."""

    title: Optional[str]
    description: str = ""
    category: str = "other"
    tags: str = ""
    is_anonymous: bool = False
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    images: List[UploadFile] = field(default_factory=list)
    delete_image_ids: str = ""


def parse_tags(raw: str) -> List[str]:
    """Comma-separated tags, trimmed, empties and duplicates dropped."""
    tags = []
    for tag in (raw or "").split(","):
        tag = tag.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def parse_location(
    latitude: Optional[str], longitude: Optional[str]
) -> Optional[Tuple[float, float]]:
    """Both coordinates or nothing; out-of-range values are rejected."""
    if not latitude or not longitude:
        return None
    try:
        lat, lng = float(latitude), float(longitude)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid coordinates"
        )
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid coordinates"
        )
    return lat, lng


def serialize_post(post: Post, viewer: Optional[User] = None) -> dict:
    """Flatten a post with its images, location and reaction sets."""
    reveal_author = not post.is_anonymous or (
        viewer is not None and (viewer.id == post.author_id or viewer.is_admin)
    )

    liked_by, disliked_by = [], []
    for reaction in sorted(post.reactions, key=lambda r: r.id):
        if reaction.reaction_type == LIKE:
            liked_by.append(reaction.user_id)
        elif reaction.reaction_type == DISLIKE:
            disliked_by.append(reaction.user_id)

    return {
        "id": post.id,
        "title": post.title,
        "description": post.description or "",
        "category": post.category,
        "tags": list(post.tags or []),
        "is_anonymous": post.is_anonymous,
        "images": [image.url for image in post.images],
        "image_ids": [image.public_id for image in post.images],
        "location": (
            {"latitude": post.location.latitude, "longitude": post.location.longitude}
            if post.location
            else None
        ),
        "author_id": post.author_id if reveal_author else None,
        "author": (
            {"id": post.author.id, "name": post.author.name}
            if reveal_author and post.author
            else None
        ),
        "likes": post.likes,
        "liked_by": liked_by,
        "dislikes": post.dislikes,
        "disliked_by": disliked_by,
        "bookmarked_by": [b.user_id for b in sorted(post.bookmarks, key=lambda b: b.id)],
        "expires_at": ensure_utc(post.expires_at),
        "created_at": ensure_utc(post.created_at),
        "updated_at": ensure_utc(post.updated_at),
        "is_expired": is_expired(post.expires_at),
    }


class PostService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Post).options(
            selectinload(Post.author),
            selectinload(Post.images),
            selectinload(Post.location),
            selectinload(Post.reactions),
            selectinload(Post.bookmarks),
        )

    def _paginate(self, query, page: int, size: int) -> Tuple[List[Post], dict]:
        total = query.count()
        posts = (
            query.order_by(Post.created_at.desc(), Post.id.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        pagination = {
            "total": total,
            "page": page,
            "size": size,
            "total_pages": math.ceil(total / size) if size else 0,
        }
        return posts, pagination

    def _validate_form(self, form: PostForm) -> Tuple[str, str, str]:
        title = (form.title or "").strip()
        if not title:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required"
            )
        category = (form.category or "other").strip() or "other"
        if category not in settings.post_categories:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid category. Allowed: {', '.join(settings.post_categories)}",
            )
        return title, (form.description or "").strip(), category

    async def _store_images(self, files: List[UploadFile]) -> List[StoredImage]:
        """
        Validate every upload first, then write them. A file that fails to
        write is logged and skipped so the remaining images still attach.
        """
        pending = []
        for file in files:
            if file is None or not file.filename:
                continue
            pending.append((file.filename, await file_upload_service.read_image(file)))

        stored = []
        for filename, contents in pending:
            try:
                stored.append(file_upload_service.save_image(filename, contents))
            except OSError as e:
                logger.error(f"Error uploading image {filename}: {e}")
        return stored

    def _discard_images(self, public_ids: List[str]) -> None:
        for public_id in public_ids:
            file_upload_service.delete_image(public_id)

    def get_post_or_404(self, post_id: int) -> Post:
        post = self._query().filter(Post.id == post_id).first()
        if not post:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Post not found"
            )
        return post

    def get_posts(
        self,
        page: int = 1,
        size: int = 20,
        search: Optional[str] = None,
        categories: Optional[List[str]] = None,
    ) -> Tuple[List[Post], dict]:
        """Non-expired posts, newest first, optionally filtered."""
        query = self._query().filter(Post.expires_at > utcnow())

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Post.title.ilike(pattern),
                    Post.description.ilike(pattern),
                    Post.category.ilike(pattern),
                    cast(Post.tags, String).ilike(pattern),
                )
            )
        if categories:
            query = query.filter(Post.category.in_(categories))

        return self._paginate(query, page, size)

    def get_user_posts(
        self, user_id: int, page: int = 1, size: int = 20
    ) -> Tuple[List[Post], dict]:
        """All posts by a user, expired ones included."""
        query = self._query().filter(Post.author_id == user_id)
        return self._paginate(query, page, size)

    def get_bookmarked_posts(
        self, user_id: int, page: int = 1, size: int = 20
    ) -> Tuple[List[Post], dict]:
        """Non-expired posts the user has bookmarked."""
        query = (
            self._query()
            .join(PostBookmark, PostBookmark.post_id == Post.id)
            .filter(
                and_(PostBookmark.user_id == user_id, Post.expires_at > utcnow())
            )
        )
        return self._paginate(query, page, size)

    async def create_post(self, form: PostForm, author: User) -> Post:
        """Create a post that expires after the configured lifetime."""
        title, description, category = self._validate_form(form)
        coordinates = parse_location(form.latitude, form.longitude)

        uploads = [f for f in form.images if f is not None and f.filename]
        if len(uploads) > settings.max_images_per_post:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"A post can have at most {settings.max_images_per_post} images",
            )
        stored = await self._store_images(uploads)

        post = Post(
            author_id=author.id,
            title=title,
            description=description,
            category=category,
            tags=parse_tags(form.tags),
            is_anonymous=form.is_anonymous,
            likes=0,
            dislikes=0,
            expires_at=days_from_now(settings.post_lifetime_days),
        )
        post.images = [
            PostImage(
                public_id=image.public_id,
                url=image.url,
                file_size=image.file_size,
                position=index,
            )
            for index, image in enumerate(stored)
        ]
        if coordinates:
            post.location = Location(latitude=coordinates[0], longitude=coordinates[1])

        try:
            self.db.add(post)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._discard_images([image.public_id for image in stored])
            raise

        logger.info(f"Post {post.id} created by user {author.id}")
        return self.get_post_or_404(post.id)

    async def update_post(self, post_id: int, form: PostForm, editor: User) -> Post:
        """Edit a live post. Only the author or an admin may edit."""
        post = self.get_post_or_404(post_id)

        if is_expired(post.expires_at):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot edit expired post",
            )
        if post.author_id != editor.id and not editor.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Unauthorized. You can only edit your own posts.",
            )

        title, description, category = self._validate_form(form)
        coordinates = parse_location(form.latitude, form.longitude)

        # Only images that belong to this post can be removed through it
        requested = {i.strip() for i in form.delete_image_ids.split(",") if i.strip()}
        removed = [image for image in post.images if image.public_id in requested]
        kept = [image for image in post.images if image.public_id not in requested]

        uploads = [f for f in form.images if f is not None and f.filename]
        if len(kept) + len(uploads) > settings.max_images_per_post:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"A post can have at most {settings.max_images_per_post} images",
            )
        stored = await self._store_images(uploads)

        post.title = title
        post.description = description
        post.category = category
        post.tags = parse_tags(form.tags)
        post.is_anonymous = form.is_anonymous

        for image in removed:
            post.images.remove(image)
        for index, image in enumerate(kept):
            image.position = index
        for offset, image in enumerate(stored):
            post.images.append(
                PostImage(
                    public_id=image.public_id,
                    url=image.url,
                    file_size=image.file_size,
                    position=len(kept) + offset,
                )
            )

        # The form always carries the full location; no coordinates clears it
        if coordinates:
            if post.location:
                post.location.latitude, post.location.longitude = coordinates
            else:
                post.location = Location(
                    latitude=coordinates[0], longitude=coordinates[1]
                )
        elif post.location:
            post.location = None

        post.updated_at = utcnow()

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._discard_images([image.public_id for image in stored])
            raise

        self._discard_images([image.public_id for image in removed])
        logger.info(f"Post {post_id} updated by user {editor.id}")

        self.db.expire_all()
        return self.get_post_or_404(post_id)

    def delete_post(self, post_id: int, user: User) -> bool:
        """Delete a post with its images and location. Author or admin only."""
        post = self.get_post_or_404(post_id)

        if post.author_id != user.id and not user.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Unauthorized. You can only delete your own posts.",
            )

        public_ids = [image.public_id for image in post.images]

        try:
            self.db.delete(post)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        # Files go only once the rows are gone
        self._discard_images(public_ids)

        logger.info(f"Post {post_id} deleted by user {user.id}")
        return True

    def purge_expired(self, retention_days: int) -> int:
        """Delete posts that expired more than `retention_days` ago."""
        cutoff = utcnow() - timedelta(days=retention_days)
        posts = self._query().filter(Post.expires_at < cutoff).all()

        public_ids = []
        for post in posts:
            public_ids.extend(image.public_id for image in post.images)
            self.db.delete(post)

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self._discard_images(public_ids)
        return len(posts)
