"""
Local-disk file storage for uploaded resumes
"""
import mimetypes
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlencode

import structlog

from talent.core.config import settings
from talent.core.exceptions import FileStorageError
from talent.resumes.files import FileType
from talent.resumes.ports import FileMetadata, FileStoragePort, FileUploadResult

logger = structlog.get_logger()


class LocalFileStorage(FileStoragePort):
    """Stores files as <root>/<user_id>/<uuid><ext>; the relative path is the storage key"""

    def __init__(self, root_dir: str = None, base_url: str = None):
        self.root_dir = Path(root_dir or settings.UPLOAD_DIR).resolve()
        self.base_url = (base_url or settings.STORAGE_BASE_URL).rstrip("/")

    def upload_file(self, content: bytes, file_name: str, size: int, file_type: FileType, user_id: int) -> FileUploadResult:
        if len(content) != size:
            raise FileStorageError(
                "Uploaded content size does not match declared size",
                details={"declared": size, "actual": len(content)},
            )
        storage_key = f"{user_id}/{uuid.uuid4()}{file_type.extension}"
        target = self._resolve(storage_key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            logger.error("file_upload_failed", storage_key=storage_key, error=str(e))
            raise FileStorageError(f"Failed to store file: {e}", details={"file_name": file_name})

        logger.info("file_stored", storage_key=storage_key, file_name=file_name, size=size)
        return FileUploadResult(
            storage_key=storage_key,
            access_url=self.generate_access_url(storage_key, settings.ACCESS_URL_TTL_MINUTES),
            size=size,
        )

    def download_file(self, storage_key: str) -> bytes:
        target = self._existing(storage_key)
        try:
            return target.read_bytes()
        except OSError as e:
            raise FileStorageError(f"Failed to read file: {e}", details={"storage_key": storage_key})

    def delete_file(self, storage_key: str) -> None:
        target = self._existing(storage_key)
        try:
            target.unlink()
        except OSError as e:
            raise FileStorageError(f"Failed to delete file: {e}", details={"storage_key": storage_key})
        logger.info("file_deleted", storage_key=storage_key)

    def file_exists(self, storage_key: str) -> bool:
        try:
            return self._resolve(storage_key).is_file()
        except FileStorageError:
            return False

    def generate_access_url(self, storage_key: str, ttl_minutes: int) -> str:
        self._resolve(storage_key)
        if ttl_minutes <= 0:
            raise FileStorageError("Access URL lifetime must be positive", details={"ttl_minutes": ttl_minutes})
        expires = int(time.time()) + ttl_minutes * 60
        return f"{self.base_url}/{storage_key}?{urlencode({'expires': expires})}"

    def get_file_metadata(self, storage_key: str) -> FileMetadata:
        target = self._existing(storage_key)
        try:
            stat = target.stat()
        except OSError as e:
            raise FileStorageError(f"Failed to read file metadata: {e}", details={"storage_key": storage_key})
        return FileMetadata(
            storage_key=storage_key,
            file_name=target.name,
            file_size=stat.st_size,
            content_type=mimetypes.guess_type(target.name)[0] or FileType.UNSUPPORTED.mime_type,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    def _resolve(self, storage_key: str) -> Path:
        if not storage_key:
            raise FileStorageError("Storage key is required")
        target = (self.root_dir / storage_key).resolve()
        # Keys must stay inside the storage root
        if self.root_dir != target and self.root_dir not in target.parents:
            raise FileStorageError("Invalid storage key", details={"storage_key": storage_key})
        return target

    def _existing(self, storage_key: str) -> Path:
        target = self._resolve(storage_key)
        if not target.is_file():
            raise FileStorageError("File not found in storage", details={"storage_key": storage_key})
        return target
