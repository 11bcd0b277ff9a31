"""
Dependency injection for FastAPI routes.
Provides reusable dependencies for caller identity, the shared block store,
the block service, and the block guard and filter.
"""
from typing import Optional
from fastapi import Depends, Header, HTTPException, Request, status

from app.core.block_filter import ResponseFilter, ViewerFilter
from app.core.block_guard import AccessGuard, TargetExtractor, default_target_extractor
from app.core.jwt_validator import JWTValidationError, decode_access_token, extract_token_from_header
from app.core.users_client import UserPlatformClient, users_client
from app.repositories.block_repo import BlockRepository
from app.services.block_service import BlockService


async def get_current_user(authorization: Optional[str] = Header(None)) -> dict:
    """
    Dependency to get the current caller from a Bearer JWT.

    Returns:
        {"id": <user id>, "claims": <decoded token payload>}

    Raises:
        HTTPException: 401 if token is missing or invalid

    Example:
        ```python
        @router.get("/protected")
        async def protected_route(current_user: dict = Depends(get_current_user)):
            return {"user": current_user["id"]}
        ```
    """
    try:
        token = extract_token_from_header(authorization)
        payload = decode_access_token(token)
    except JWTValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {"id": payload["user_id"], "claims": payload}


def get_block_store(request: Request) -> BlockRepository:
    """The block store composed at startup and shared by service, guard and filter."""
    return request.app.state.block_store


def get_user_platform() -> UserPlatformClient:
    """User platform client (profile lookup + follow graph)."""
    return users_client


def get_block_service(
    store: BlockRepository = Depends(get_block_store),
    platform: UserPlatformClient = Depends(get_user_platform),
) -> BlockService:
    """Block service over the shared store."""
    return BlockService(store, profiles=platform, follow_graph=platform)


def get_viewer_filter(
    current_user: dict = Depends(get_current_user),
    store: BlockRepository = Depends(get_block_store),
) -> ViewerFilter:
    """Response filter bound to the current caller."""
    return ViewerFilter(ResponseFilter(store), current_user["id"])


def require_no_block(extractor: TargetExtractor = default_target_extractor):
    """
    Build a dependency that runs the access guard for a route.

    Args:
        extractor: Finds the target user id in the request

    Returns:
        Dependency resolving to the target id (or None if the route named none)

    Example:
        ```python
        @router.post("/{user_id}/follow")
        async def follow(target_id: Optional[str] = Depends(require_no_block(from_path("user_id")))):
            ...
        ```
    """
    async def guard(
        request: Request,
        current_user: dict = Depends(get_current_user),
        store: BlockRepository = Depends(get_block_store),
    ) -> Optional[str]:
        target_id = await extractor(request)
        await AccessGuard(store).check(current_user["id"], target_id)
        return target_id

    return guard
