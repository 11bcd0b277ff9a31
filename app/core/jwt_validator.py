"""
JWT Token Validator.
Verifies caller tokens issued by the identity provider locally, without
external API calls. This service never issues tokens.
"""
import jwt
from typing import Dict, Any, Optional
from app.config import settings


class JWTValidationError(Exception):
    """Raised when JWT validation fails."""
    pass


def extract_token_from_header(authorization: Optional[str]) -> str:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        JWTValidationError: If the header is missing or malformed
    """
    if not authorization:
        raise JWTValidationError("Missing authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise JWTValidationError("Invalid authorization header format. Expected: Bearer <token>")

    return parts[1]


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a caller JWT.

    Args:
        token: JWT token string (from Authorization: Bearer header)

    Returns:
        Decoded payload with the caller id under "user_id":
        {
            "user_id": "clxxxxx",      # from 'sub' or 'id' claim
            "exp": 1234567890,
            ...                         # all other claims
        }

    Raises:
        JWTValidationError: If token is invalid or expired

    Example:
        ```python
        try:
            payload = decode_access_token(token)
            user_id = payload["user_id"]
        except JWTValidationError as e:
            raise HTTPException(401, detail=str(e))
        ```
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=settings.get_jwt_algorithms_list(),
            options={
                "verify_exp": True,
                "verify_signature": True,
            }
        )
    except jwt.ExpiredSignatureError:
        raise JWTValidationError("Token has expired - please login again")
    except jwt.InvalidSignatureError:
        raise JWTValidationError("Invalid token signature")
    except jwt.DecodeError as e:
        raise JWTValidationError(f"Failed to decode token: {str(e)}")
    except jwt.InvalidTokenError as e:
        raise JWTValidationError(f"Invalid token: {str(e)}")

    # Try "sub" first (standard JWT claim), then "id"
    user_id = payload.get("sub") or payload.get("id")
    if not user_id:
        raise JWTValidationError("Token missing user ID claim ('sub' or 'id')")

    return {**payload, "user_id": str(user_id)}
