"""All database schema objects."""

from __future__ import annotations

from .base import SchemaBase
from .user import User, UserGroup

__all__ = [
    "SchemaBase",
    "User",
    "UserGroup",
]
