"""File admission rules for audio uploads."""

from typing import Optional
from ..config import settings
from ..schemas.upload import FileInfo, ValidationResult
from ..utils.helpers import format_file_size, get_file_extension


# Extensions whose display name is not just the upper-cased suffix
EXTENSION_LABELS = {".webm": "WebM"}


def _format_labels(extensions: list[str]) -> str:
    """MP3, WAV, ..., or FLAC"""
    labels = [EXTENSION_LABELS.get(ext, ext.lstrip(".").upper()) for ext in extensions]
    if len(labels) < 2:
        return "".join(labels)
    return f"{', '.join(labels[:-1])}, or {labels[-1]}"


def validate_file(
    name: str, byte_size: int, declared_mime_type: Optional[str]
) -> ValidationResult:
    """
    Decide whether a file may be uploaded.
    Rules are checked in order and the first failure wins:
    size limit, MIME allow-list, extension allow-list.
    """
    extension = get_file_extension(name)

    if byte_size > settings.max_file_size:
        return ValidationResult(
            admissible=False,
            reason=f"File size must be less than {format_file_size(settings.max_file_size)}",
        )

    if declared_mime_type not in settings.allowed_mime_types:
        return ValidationResult(
            admissible=False,
            reason=f"Please upload an audio file ({_format_labels(settings.allowed_extensions)})",
        )

    if extension not in settings.allowed_extensions:
        return ValidationResult(
            admissible=False,
            reason="File extension not supported. Please use: "
            + ", ".join(settings.allowed_extensions),
        )

    if byte_size <= 0:
        return ValidationResult(admissible=False, reason="File is empty")

    return ValidationResult(
        admissible=True,
        file_info=FileInfo(
            name=name,
            size=byte_size,
            type=declared_mime_type,
            extension=extension,
        ),
    )


def is_file_type_supported(mime_type: str) -> bool:
    """Check if a MIME type is on the allow-list."""
    return mime_type in settings.allowed_mime_types
