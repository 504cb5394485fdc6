"""Error kinds and the normalization boundary for external failures."""

from enum import Enum
from typing import Optional

import httpx
from botocore.exceptions import ClientError
from fastapi import status
from sqlalchemy.exc import SQLAlchemyError


class ErrorKind(str, Enum):
    """Closed set of error kinds surfaced to callers."""

    VALIDATION = "validation_error"
    REMOTE_AUTH = "remote_auth_error"
    REMOTE_STORAGE = "remote_storage_error"
    REMOTE_QUERY = "remote_query_error"


class PodcasterError(Exception):
    """Base exception carrying a kind and a user-facing message."""

    kind: ErrorKind = ErrorKind.REMOTE_QUERY
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PodcasterError):
    """Input rejected locally; never sent to a remote service."""

    kind = ErrorKind.VALIDATION
    status_code = status.HTTP_400_BAD_REQUEST


class RemoteAuthError(PodcasterError):
    """Failure reported by the auth provider."""

    kind = ErrorKind.REMOTE_AUTH
    status_code = status.HTTP_401_UNAUTHORIZED


class RemoteStorageError(PodcasterError):
    """Failure reported by the object store."""

    kind = ErrorKind.REMOTE_STORAGE
    status_code = status.HTTP_502_BAD_GATEWAY


class RemoteQueryError(PodcasterError):
    """Failure reported by the relational store."""

    kind = ErrorKind.REMOTE_QUERY
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class NotFoundError(RemoteQueryError):
    """Row is absent or belongs to another owner."""

    status_code = status.HTTP_404_NOT_FOUND


_KIND_TO_ERROR = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.REMOTE_AUTH: RemoteAuthError,
    ErrorKind.REMOTE_STORAGE: RemoteStorageError,
    ErrorKind.REMOTE_QUERY: RemoteQueryError,
}


def _extract_message(exc: BaseException) -> Optional[str]:
    """Best-effort message from the various SDK error shapes."""
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Message") or str(exc)
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            body = exc.response.json()
        except ValueError:
            body = {}
        if isinstance(body, dict):
            for field in ("msg", "error_description", "message", "error"):
                if isinstance(body.get(field), str) and body[field]:
                    return body[field]
        return str(exc)
    if isinstance(exc, SQLAlchemyError):
        # The wrapped DBAPI error carries the useful part
        return str(getattr(exc, "orig", None) or exc)
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc)


def normalize_error(
    exc: BaseException, kind: ErrorKind, fallback: str
) -> PodcasterError:
    """
    Convert any external exception into a PodcasterError of the given kind.
    PodcasterErrors pass through unchanged.
    """
    if isinstance(exc, PodcasterError):
        return exc
    message = _extract_message(exc) or fallback
    return _KIND_TO_ERROR[kind](message)

