"""Custom Pydantic validators."""

TITLE_MAX_LENGTH = 255


def validate_title(title: str) -> str:
    """Trim a display title and reject blank ones."""
    title = title.strip()
    if not title:
        raise ValueError("Title cannot be empty")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValueError(f"Title must be at most {TITLE_MAX_LENGTH} characters long")
    return title


def validate_password_length(password: str) -> str:
    """Validate password meets the auth provider's minimum length."""
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters long")
    return password
