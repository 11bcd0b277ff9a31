"""
Pydantic schema exports.
Provides request/response models for API endpoints.
"""
from app.schemas.block import (
    BlockCreate,
    BlockUpdate,
    BlockResponse,
    BlockWithUserResponse,
    BlockRelationshipResponse,
    BlockStatsResponse,
    IsBlockedResponse,
    IsBlockedByResponse,
    MessageResponse,
)
from app.schemas.user import (
    PublicUserProfile,
    UserSearchResponse,
)

__all__ = [
    "BlockCreate",
    "BlockUpdate",
    "BlockResponse",
    "BlockWithUserResponse",
    "BlockRelationshipResponse",
    "BlockStatsResponse",
    "IsBlockedResponse",
    "IsBlockedByResponse",
    "MessageResponse",
    "PublicUserProfile",
    "UserSearchResponse",
]
