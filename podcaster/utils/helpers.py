"""Helper functions for common operations."""

import os
import secrets
import time
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format, e.g. ``100 MB`` or ``1.5 KB``."""
    if size_bytes <= 0:
        return "0 Bytes"
    value = float(size_bytes)
    exponent = 0
    while value >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    value = round(value, 2)
    return f"{value:g} {_SIZE_UNITS[exponent]}"


def get_file_extension(filename: str) -> str:
    """Lower-cased suffix after the last dot, with the dot."""
    return "." + filename.rsplit(".", 1)[-1].lower()


def current_time_millis() -> int:
    """Milliseconds since the epoch."""
    return int(time.time() * 1000)


def generate_storage_key(owner_id: str, filename: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Generate storage key for an upload.
    Format: owner_id/<millis>-filename
    """
    if timestamp_ms is None:
        timestamp_ms = current_time_millis()
    # Path components in a client-supplied name must not escape the owner prefix
    return f"{owner_id}/{timestamp_ms}-{os.path.basename(filename)}"


def build_public_url(base_url: str, key: str) -> str:
    """Join a public base URL and an object key."""
    return f"{base_url.rstrip('/')}/{quote(key)}"


def generate_task_id() -> str:
    """Random identifier for an upload task."""
    return secrets.token_hex(8)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
