"""
Block schemas for request/response validation.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.config import settings
from app.schemas.user import PublicUserProfile


def _validate_reason(v: Optional[str]) -> Optional[str]:
    """Strip whitespace, treat blank as no reason, enforce max length."""
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    if len(v) > settings.block_reason_max_length:
        raise ValueError(f"Reason must be at most {settings.block_reason_max_length} characters")
    return v


class BlockCreate(BaseModel):
    """Schema for blocking a user."""
    target_id: str = Field(..., min_length=1, max_length=255, description="ID of the user to block")
    reason: Optional[str] = Field(None, description="Optional reason for blocking")

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: Optional[str]) -> Optional[str]:
        return _validate_reason(v)


class BlockUpdate(BaseModel):
    """Schema for updating a block. Only provided fields are changed."""
    reason: Optional[str] = Field(None, description="New reason")
    is_active: Optional[bool] = Field(None, description="Whether the block is in force")

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: Optional[str]) -> Optional[str]:
        return _validate_reason(v)

    @field_validator("is_active")
    @classmethod
    def reject_null_is_active(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise ValueError("is_active cannot be null")
        return v


class BlockResponse(BaseModel):
    """Schema for a block edge."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    blocker_id: str
    blocked_id: str
    reason: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class BlockWithUserResponse(BlockResponse):
    """Block edge with the counterpart user's public profile."""
    user: Optional[PublicUserProfile] = None


class BlockRelationshipResponse(BaseModel):
    """Block relationship between the caller and another user."""
    is_blocked: bool
    is_blocked_by: bool
    block: Optional[BlockResponse] = None


class BlockStatsResponse(BaseModel):
    """Active block counts for the caller."""
    blocked_count: int
    blocked_by_count: int


class IsBlockedResponse(BaseModel):
    is_blocked: bool


class IsBlockedByResponse(BaseModel):
    is_blocked_by: bool


class MessageResponse(BaseModel):
    message: str
