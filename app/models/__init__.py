"""
SQLAlchemy models for the block relationship server.

All models must be imported here for Alembic auto-generation to work.
"""

# Import Base first
from app.models.base import Base, TimestampMixin, UUIDMixin

from app.models.user_block import UserBlock

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # User blocking
    "UserBlock",
]
