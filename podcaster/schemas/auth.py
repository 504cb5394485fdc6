"""Authentication schemas."""

from typing import Any, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator
from ..utils.validators import validate_password_length


class SignInRequest(BaseModel):
    """Password sign-in. Fields are optional so missing ones answer 400."""

    email: Optional[str] = None
    password: Optional[str] = None


class SignUpRequest(BaseModel):
    """User registration request schema."""

    email: EmailStr
    password: str
    metadata: Optional[dict] = Field(default=None, description="Stored as user metadata")

    @field_validator("password")
    @classmethod
    def _validate_password(cls, v: str) -> str:
        return validate_password_length(v)


class ResetPasswordRequest(BaseModel):
    """Password reset e-mail request."""

    email: EmailStr


class AuthError(BaseModel):
    """Error half of an auth provider response."""

    message: str
    status: Optional[int] = None


class AuthResponse(BaseModel):
    """The provider's ``{data, error}`` pair."""

    data: Optional[Any] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, message: str, status: Optional[int] = None) -> "AuthResponse":
        return cls(data=None, error=AuthError(message=message, status=status))
