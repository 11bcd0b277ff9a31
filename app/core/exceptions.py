"""
Error taxonomy for the blocking subsystem.

Every error carries a machine-readable code and the HTTP status the API
layer renders it with. DependencyError never reaches a client: the follow
cascade catches and logs it.
"""
import enum
from typing import Any, Dict, Optional

from fastapi import status


class BlockDirection(str, enum.Enum):
    """Which side of a block edge the caller is on."""
    BLOCKED_BY = "blocked_by"   # target blocked the caller
    BLOCKING = "blocking"       # caller blocked the target


class BlockError(Exception):
    """Base exception for block relationship errors."""

    code: str = "BLOCK_ERROR"
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, Any]:
        """Convert to the REST error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }


class InvalidOperationError(BlockError):
    """Raised for operations that can never succeed, e.g. blocking yourself."""

    code = "INVALID_OPERATION"
    http_status = status.HTTP_400_BAD_REQUEST


class ConflictError(BlockError):
    """Raised when the ordered pair already has an active block."""

    code = "CONFLICT"
    http_status = status.HTTP_409_CONFLICT


class NotFoundError(BlockError):
    """Raised when an operation targets a block edge that does not exist."""

    code = "NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND


class ForbiddenError(BlockError):
    """Raised by the access guard when the two users are blocked."""

    http_status = status.HTTP_403_FORBIDDEN

    MESSAGES = {
        BlockDirection.BLOCKED_BY: "You cannot interact with this user as they have blocked you",
        BlockDirection.BLOCKING: "You cannot interact with this user as you have blocked them",
    }

    def __init__(self, direction: BlockDirection, message: Optional[str] = None):
        super().__init__(message or self.MESSAGES[direction])
        self.direction = direction
        self.code = direction.name

    def to_response(self) -> Dict[str, Any]:
        response = super().to_response()
        response["error"]["direction"] = self.direction.value
        return response


class DependencyError(BlockError):
    """Raised when a collaborator call made on behalf of a block fails."""

    code = "DEPENDENCY_FAILED"
    http_status = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
