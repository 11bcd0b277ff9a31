"""
Repository layer exports.
Provides database access layer for the application.
"""
from app.repositories.base import BaseRepository
from app.repositories.block_repo import BlockRepository

__all__ = [
    "BaseRepository",
    "BlockRepository",
]
