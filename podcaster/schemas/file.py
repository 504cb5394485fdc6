"""Podcast file schemas."""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from ..schemas.quota import QuotaSnapshot
from ..utils.validators import validate_title


class PodcastFile(BaseModel):
    """File record as mirrored from the relational store."""

    id: str
    user_id: str
    title: Optional[str] = None
    file_name: str
    file_size: int = Field(..., gt=0)
    file_url: str
    storage_key: Optional[str] = None
    content_type: Optional[str] = None
    status: str = Field(default="uploaded", description="uploaded, processing, completed, error")
    created_at: datetime
    updated_at: datetime

    @property
    def display_title(self) -> str:
        return self.title or self.file_name

    class Config:
        from_attributes = True


class FileListResponse(BaseModel):
    """Filtered and sorted view of an owner's files."""

    files: List[PodcastFile]
    total: int = Field(..., description="Number of records before filtering")
    search: str = ""
    sort: str
    order: str


class RenameRequest(BaseModel):
    """New display title for a file."""

    title: str = Field(..., max_length=500)

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v: str) -> str:
        return validate_title(v)


class BulkDeleteRequest(BaseModel):
    """Ids to delete in one call."""

    ids: List[str] = Field(..., min_length=1)


class DeleteResponse(BaseModel):
    """Result of a delete, with refreshed storage usage."""

    deleted_ids: List[str]
    quota: QuotaSnapshot
