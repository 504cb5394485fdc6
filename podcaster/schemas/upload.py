"""Upload validation, result and task schemas."""

from typing import List, Optional
from pydantic import BaseModel, Field
from ..utils.constants import UploadTaskState


class FileInfo(BaseModel):
    """Metadata of a file that passed validation."""

    name: str
    size: int
    type: str
    extension: str


class ValidationResult(BaseModel):
    """Outcome of screening one file against the configured limits."""

    admissible: bool
    reason: Optional[str] = None
    file_info: Optional[FileInfo] = None


class UploadedObject(BaseModel):
    """Where a successful upload ended up."""

    path: str
    storage_url: str
    file_name: str = Field(..., description="Original file name, before key mangling")
    byte_size: int


class UploadResult(BaseModel):
    """Success with the uploaded object, or failure with a message."""

    success: bool
    data: Optional[UploadedObject] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: UploadedObject) -> "UploadResult":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, error: str) -> "UploadResult":
        return cls(success=False, error=error)


class UploadTaskResponse(BaseModel):
    """Client view of one upload attempt."""

    id: str
    file_name: str
    byte_size: int
    content_type: Optional[str] = None
    progress: float = Field(default=0.0, ge=0, le=100)
    state: UploadTaskState
    error: Optional[str] = None
    storage_url: Optional[str] = None
    record_id: Optional[str] = None

    class Config:
        from_attributes = True


class UploadBatchResponse(BaseModel):
    """Tasks created for one upload request."""

    tasks: List[UploadTaskResponse]
