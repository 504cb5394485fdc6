"""Sequencing of a single file upload: validate, store, resolve URL."""

from dataclasses import dataclass
from typing import Callable, Optional
from ..core.exceptions import ErrorKind, normalize_error
from ..middleware.validation import validate_file
from ..repositories.storage_repo import StorageRepository
from ..schemas.upload import UploadedObject, UploadResult
from ..utils.constants import UPLOAD_FAILED_MESSAGE
from ..utils.helpers import generate_storage_key
from ..utils.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class AudioFile:
    """
    An incoming file held in memory.
    Parts rejected before reading carry only their declared byte_size.
    """

    name: str
    content_type: Optional[str]
    data: bytes = b""
    byte_size: Optional[int] = None

    @property
    def size(self) -> int:
        return len(self.data) if self.byte_size is None else self.byte_size


class UploadOrchestrator:
    """Uploads one file at a time; callers run several instances of upload() concurrently."""

    def __init__(self, storage_repo: StorageRepository):
        self.storage_repo = storage_repo

    async def upload(
        self,
        file: AudioFile,
        owner_id: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """
        Validate and store a file.
        Progress is forwarded verbatim as (loaded, total) byte counts.
        No retries: a failure is returned to the caller as-is.
        """
        # Checked again even when the caller already validated
        validation = validate_file(file.name, file.size, file.content_type)
        if not validation.admissible:
            return UploadResult.failed(validation.reason)

        # Same name within the same millisecond would collide
        storage_key = generate_storage_key(owner_id, file.name)

        try:
            path = await self.storage_repo.put(
                key=storage_key,
                data=file.data,
                content_type=file.content_type,
                on_progress=on_progress,
            )
        except Exception as e:
            error = normalize_error(e, ErrorKind.REMOTE_STORAGE, UPLOAD_FAILED_MESSAGE)
            logger.error(
                "Upload error",
                owner_id=owner_id,
                storage_key=storage_key,
                error=error.message,
            )
            return UploadResult.failed(error.message or UPLOAD_FAILED_MESSAGE)

        logger.info(
            "File uploaded",
            owner_id=owner_id,
            storage_key=path,
            file_size=file.size,
        )
        return UploadResult.ok(
            UploadedObject(
                path=path,
                storage_url=self.storage_repo.public_url(path),
                file_name=file.name,
                byte_size=file.size,
            )
        )
