"""
Service layer exports.
Provides business logic for the application.
"""
from app.services.block_service import BlockService
from app.services.follow_cascade import CascadeReport, FollowCascade

__all__ = [
    "BlockService",
    "CascadeReport",
    "FollowCascade",
]
