# app/models/post_image.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from app.core.database import Base


class PostImage(Base):
    __tablename__ = "post_images"

    id = Column(Integer, primary_key=True, index=True)

    post_id = Column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Storage identifier used for deletion (e.g. 'posts/uuid.jpg')
    public_id = Column(String(255), nullable=False, unique=True)
    url = Column(Text, nullable=False)
    file_size = Column(Integer, nullable=True)

    # Ordering (for multiple images in one post)
    position = Column(Integer, default=0, nullable=False)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<PostImage(id={self.id}, post_id={self.post_id}, public_id='{self.public_id}')>"
