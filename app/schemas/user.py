"""
User schemas for API request/response validation.
Maps user platform profile data to internal structures.
"""
from typing import List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PublicUserProfile(BaseModel):
    """
    Public profile fields used to enrich block lists.

    Accepts both snake_case and the platform's camelCase keys.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(validation_alias=AliasChoices("id", "_id", "user_id"))
    username: Optional[str] = None
    first_name: Optional[str] = Field(None, validation_alias=AliasChoices("first_name", "firstName"))
    last_name: Optional[str] = Field(None, validation_alias=AliasChoices("last_name", "lastName"))
    image: Optional[str] = Field(None, validation_alias=AliasChoices("image", "avatar", "avatar_url"))


class UserSearchResponse(BaseModel):
    """Search page forwarded from the user platform (already block-filtered)."""
    model_config = ConfigDict(extra="allow")

    users: List[dict] = Field(default_factory=list)
