"""
Block API routes.
Provides endpoints for blocking, unblocking and querying block relationships.
"""
from typing import List

from fastapi import APIRouter, Depends, Request, status

from app.core.rate_limit import BLOCK_MUTATION_LIMIT, limiter
from app.dependencies import get_block_service, get_current_user
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
from app.services.block_service import BlockService

router = APIRouter()


@router.post(
    "/",
    response_model=BlockResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Block a user",
    responses={400: {"description": "Cannot block yourself"}, 409: {"description": "User is already blocked"}},
)
@limiter.limit(BLOCK_MUTATION_LIMIT)
async def create_block(
    request: Request,
    block_data: BlockCreate,
    current_user: dict = Depends(get_current_user),
    service: BlockService = Depends(get_block_service),
):
    """
    Block a user.

    - **target_id**: ID of the user to block
    - **reason**: Optional reason (max 500 characters)

    Existing follow relationships in both directions are removed.
    """
    block = await service.create_block(current_user["id"], block_data.target_id, block_data.reason)
    return BlockResponse.model_validate(block)


@router.put(
    "/{target_id}",
    response_model=BlockResponse,
    summary="Update block relationship",
    responses={404: {"description": "Block relationship not found"}},
)
@limiter.limit(BLOCK_MUTATION_LIMIT)
async def update_block(
    request: Request,
    target_id: str,
    block_data: BlockUpdate,
    current_user: dict = Depends(get_current_user),
    service: BlockService = Depends(get_block_service),
):
    """Update the reason or active flag of a block. Omitted fields are unchanged."""
    block = await service.update_block(
        current_user["id"],
        target_id,
        block_data.model_dump(exclude_unset=True),
    )
    return BlockResponse.model_validate(block)


@router.delete(
    "/{target_id}",
    response_model=MessageResponse,
    summary="Unblock a user",
    responses={404: {"description": "Block relationship not found"}},
)
@limiter.limit(BLOCK_MUTATION_LIMIT)
async def remove_block(
    request: Request,
    target_id: str,
    current_user: dict = Depends(get_current_user),
    service: BlockService = Depends(get_block_service),
):
    """Unblock a user. Follow relationships are not restored."""
    return await service.remove_block(current_user["id"], target_id)


@router.get(
    "/blocked",
    response_model=List[BlockWithUserResponse],
    summary="Get users blocked by current user",
)
async def get_blocked_users(
    current_user: dict = Depends(get_current_user),
    service: BlockService = Depends(get_block_service),
):
    return await service.list_blocked(current_user["id"])


@router.get(
    "/blocked-by",
    response_model=List[BlockWithUserResponse],
    summary="Get users who blocked current user",
)
async def get_blocked_by_users(
    current_user: dict = Depends(get_current_user),
    service: BlockService = Depends(get_block_service),
):
    return await service.list_blocked_by(current_user["id"])


@router.get(
    "/stats",
    response_model=BlockStatsResponse,
    summary="Get block statistics for current user",
)
async def get_block_stats(
    current_user: dict = Depends(get_current_user),
    service: BlockService = Depends(get_block_service),
):
    return await service.get_stats(current_user["id"])


@router.get(
    "/check/{user_id}",
    response_model=BlockRelationshipResponse,
    summary="Check block relationship with a specific user",
)
async def check_block_relationship(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    service: BlockService = Depends(get_block_service),
):
    relationship = await service.get_relationship(current_user["id"], user_id)
    block = relationship["block"]

    return BlockRelationshipResponse(
        is_blocked=relationship["is_blocked"],
        is_blocked_by=relationship["is_blocked_by"],
        block=BlockResponse.model_validate(block) if block else None,
    )


@router.get(
    "/is-blocked/{user_id}",
    response_model=IsBlockedResponse,
    summary="Check if current user has blocked a specific user",
)
async def is_blocked(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    service: BlockService = Depends(get_block_service),
):
    return {"is_blocked": await service.is_blocked(current_user["id"], user_id)}


@router.get(
    "/is-blocked-by/{user_id}",
    response_model=IsBlockedByResponse,
    summary="Check if current user is blocked by a specific user",
)
async def is_blocked_by(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    service: BlockService = Depends(get_block_service),
):
    return {"is_blocked_by": await service.is_blocked_by(current_user["id"], user_id)}
