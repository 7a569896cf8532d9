# app/utils/file_upload.py

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from fastapi import HTTPException, UploadFile

from app.core.config import settings

logger = logging.getLogger(__name__)

# Allowed file extensions
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic"}
MAX_IMAGE_SIZE = settings.max_upload_size_mb * 1024 * 1024


@dataclass
class StoredImage:
    public_id: str  # path relative to the storage root, used for deletion
    url: str
    file_size: int


class FileUploadService:
    """Service to handle image uploads with UUID naming and storage management."""

    def __init__(self, base_storage_path: str = "storage", public_base_url: str = ""):
        """
        Initialize the file upload service.

        Args:
            base_storage_path: Base directory for file storage
            public_base_url: URL prefix the storage directory is served under
        """
        self.base_storage_path = Path(base_storage_path)
        self.public_base_url = public_base_url.rstrip("/")

    def _get_file_extension(self, filename: str) -> str:
        """Extract file extension from filename."""
        return Path(filename).suffix.lower()

    def _validate_image(self, file: UploadFile) -> None:
        """
        Validate uploaded image file.

        Raises:
            HTTPException: If file is invalid
        """
        if not file.filename:
            raise HTTPException(status_code=400, detail="No filename provided")

        extension = self._get_file_extension(file.filename)
        if extension not in ALLOWED_IMAGE_EXTENSIONS:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid file type. Allowed types: {', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}",
            )

    async def read_image(self, file: UploadFile) -> bytes:
        """
        Validate an uploaded image and return its bytes.

        Raises:
            HTTPException: If the file type, size or content is invalid
        """
        self._validate_image(file)

        try:
            contents = await file.read()
        except Exception as e:
            raise HTTPException(status_code=400, detail=f"Error reading file: {str(e)}")
        finally:
            await file.seek(0)

        if len(contents) > MAX_IMAGE_SIZE:
            raise HTTPException(
                status_code=400,
                detail=f"File size exceeds maximum allowed size of {settings.max_upload_size_mb}MB",
            )
        if not contents:
            raise HTTPException(status_code=400, detail="Empty file uploaded")

        return contents

    def save_image(
        self, filename: str, contents: bytes, folder: str = "posts"
    ) -> StoredImage:
        """
        Write validated image bytes under a UUID name.

        Raises:
            OSError: If the file cannot be written
        """
        extension = self._get_file_extension(filename)
        uuid_filename = f"{uuid.uuid4()}{extension}"

        folder_path = self.base_storage_path / folder
        folder_path.mkdir(parents=True, exist_ok=True)
        (folder_path / uuid_filename).write_bytes(contents)

        public_id = f"{folder}/{uuid_filename}"
        return StoredImage(
            public_id=public_id,
            url=f"{self.public_base_url}/storage/{public_id}",
            file_size=len(contents),
        )

    def delete_image(self, public_id: str) -> bool:
        """
        Delete a stored image. Missing files and failures are logged, not raised,
        so removing a post never fails because of its media.
        """
        path = (self.base_storage_path / public_id).resolve()
        if self.base_storage_path.resolve() not in path.parents:
            logger.warning(f"Refusing to delete outside storage: {public_id}")
            return False

        try:
            path.unlink()
            return True
        except FileNotFoundError:
            logger.warning(f"Image already gone: {public_id}")
            return False
        except OSError as e:
            logger.error(f"Error deleting image {public_id}: {e}")
            return False


file_upload_service = FileUploadService(
    base_storage_path=settings.upload_dir, public_base_url=settings.app_url
)
