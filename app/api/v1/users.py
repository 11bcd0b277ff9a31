"""
User API routes.
Forwards profile and follow operations to the user platform with the
block guard and block filter applied.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.core.block_filter import ViewerFilter, filter_blocked
from app.core.block_guard import from_path
from app.core.users_client import UserPlatformClient
from app.schemas.user import UserSearchResponse
from app.dependencies import (
    get_current_user,
    get_user_platform,
    get_viewer_filter,
    require_no_block,
)

router = APIRouter()


@router.get(
    "/search",
    response_model=UserSearchResponse,
    summary="Search users",
    description="Search users by name or username. Users with a block in either direction are omitted."
)
@filter_blocked(collection_key="users")
async def search_users(
    q: str = Query(..., min_length=1, description="Search query"),
    limit: int = Query(20, ge=1, le=100, description="Maximum number of results"),
    viewer_filter: ViewerFilter = Depends(get_viewer_filter),
    platform: UserPlatformClient = Depends(get_user_platform),
):
    return await platform.search_users(q, limit=limit)


@router.get(
    "/{user_id}",
    summary="Get user profile",
    description="Get a public profile. Returns 404 when a block exists in either direction."
)
@filter_blocked()
async def get_user(
    user_id: str,
    viewer_filter: ViewerFilter = Depends(get_viewer_filter),
    platform: UserPlatformClient = Depends(get_user_platform),
):
    return await platform.get_user(user_id)


@router.get(
    "/{user_id}/followers",
    summary="Get followers of a user"
)
@filter_blocked()
async def get_followers(
    user_id: str,
    limit: int = Query(20, ge=1, le=100),
    skip: int = Query(0, ge=0),
    target_id: Optional[str] = Depends(require_no_block(from_path("user_id"))),
    viewer_filter: ViewerFilter = Depends(get_viewer_filter),
    platform: UserPlatformClient = Depends(get_user_platform),
):
    return await platform.get_followers(user_id, limit=limit, skip=skip)


@router.get(
    "/{user_id}/following",
    summary="Get users followed by a user"
)
@filter_blocked()
async def get_following(
    user_id: str,
    limit: int = Query(20, ge=1, le=100),
    skip: int = Query(0, ge=0),
    target_id: Optional[str] = Depends(require_no_block(from_path("user_id"))),
    viewer_filter: ViewerFilter = Depends(get_viewer_filter),
    platform: UserPlatformClient = Depends(get_user_platform),
):
    return await platform.get_following(user_id, limit=limit, skip=skip)


@router.post(
    "/{user_id}/follow",
    summary="Follow a user",
    description="Follow a user. Rejected with 403 when a block exists in either direction."
)
async def follow_user(
    user_id: str,
    target_id: Optional[str] = Depends(require_no_block(from_path("user_id"))),
    current_user: dict = Depends(get_current_user),
    platform: UserPlatformClient = Depends(get_user_platform),
):
    return await platform.follow(current_user["id"], user_id)


@router.delete(
    "/{user_id}/follow",
    summary="Unfollow a user"
)
async def unfollow_user(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    platform: UserPlatformClient = Depends(get_user_platform),
):
    return await platform.unfollow(current_user["id"], user_id)
