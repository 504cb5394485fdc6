"""Database models."""

from .podcast import Podcast

__all__ = ["Podcast"]
