"""Unit tests for validators."""

import pytest
from podcaster.utils.validators import validate_password_length, validate_title


def test_validate_title_trims_whitespace():
    """Test title validation strips surrounding whitespace."""
    assert validate_title("  Episode 12  ") == "Episode 12"


def test_validate_title_rejects_blank():
    """Test title validation with whitespace-only title."""
    with pytest.raises(ValueError, match="cannot be empty"):
        validate_title("   ")


def test_validate_title_too_long():
    """Test title validation with an overlong title."""
    with pytest.raises(ValueError, match="at most 255"):
        validate_title("x" * 256)


def test_validate_password_length_success():
    """Test password validation with valid password."""
    assert validate_password_length("secret") == "secret"


def test_validate_password_length_too_short():
    """Test password validation with too short password."""
    with pytest.raises(ValueError, match="at least 6 characters"):
        validate_password_length("abc")
