"""
Global exception handlers.

BlockError subclasses render as {"error": {"code", "message"}} with the
status each error declares. User platform failures render as 502 unless
the platform itself answered 404.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.core.exceptions import BlockError
from app.core.users_client import UserPlatformException

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(BlockError)
    async def block_error_handler(request: Request, exc: BlockError):
        logger.info(
            f"{type(exc).__name__} on {request.url.path}: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(UserPlatformException)
    async def user_platform_error_handler(request: Request, exc: UserPlatformException):
        logger.warning(
            f"User platform error on {request.url.path}: {exc}",
            extra={"path": request.url.path},
        )
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"error": {"code": "NOT_FOUND", "message": str(exc)}},
            )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": {"code": "USER_PLATFORM_ERROR", "message": "User platform request failed"}},
        )

    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
