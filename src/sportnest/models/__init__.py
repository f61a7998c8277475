"""Database models."""

from sportnest.models.base import Base, TimestampMixin, UUIDMixin
from sportnest.models.user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "User",
]
