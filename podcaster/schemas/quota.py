"""Storage quota schemas."""

from pydantic import BaseModel, Field
from ..utils.constants import StorageLevel


class QuotaSnapshot(BaseModel):
    """Derived storage usage for one owner. Not persisted."""

    usage: int = Field(..., ge=0, description="Bytes used")
    percentage: int = Field(..., ge=0, le=100, description="Rounded share of the quota used")
    remaining: int = Field(..., ge=0, description="Bytes left before the quota is reached")
    max_user_storage: int
    max_file_size: int
    supported_formats: int = Field(..., description="Number of accepted file extensions")
    level: StorageLevel


class StorageObject(BaseModel):
    """Raw object listed under an owner's prefix."""

    name: str
    key: str
    size: int
    last_modified: str
