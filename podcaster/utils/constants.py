"""Application constants and enums."""

from enum import Enum


class ProcessingStatus(str, Enum):
    """Processing status of a stored podcast file.

    Only ``UPLOADED`` is ever written by this service; the other values are
    set by the external processing pipeline.
    """

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class UploadTaskState(str, Enum):
    """Lifecycle of a single upload attempt."""

    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadTaskState.COMPLETED, UploadTaskState.ERROR)


class SortField(str, Enum):
    """Fields the file list can be sorted by."""

    NAME = "name"
    SIZE = "size"
    STATUS = "status"
    CREATED_AT = "created_at"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortOrder":
        return SortOrder.DESC if self is SortOrder.ASC else SortOrder.ASC


class StorageLevel(str, Enum):
    """Coarse storage health bands shown next to the usage bar."""

    HEALTHY = "healthy"
    GETTING_FULL = "getting_full"
    ALMOST_FULL = "almost_full"


UPLOAD_FAILED_MESSAGE = "Upload failed. Please try again."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."
