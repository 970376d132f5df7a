"""FastAPI dependencies for bearer-token authentication."""

from typing import Optional
from uuid import UUID

import jwt
from fastapi import Depends, Header
from jwt import PyJWTError

from .config import settings
from .exceptions import AuthenticationError, AuthorizationError

ADMINISTRATOR_ROLE = "administrator"


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> dict:
    """
    Authentication dependency that validates Bearer tokens.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        dict: User information from validated token, ``user_id`` as a UUID

    Raises:
        AuthenticationError: If token is invalid or missing
    """
    if not authorization:
        raise AuthenticationError(detail="Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError(detail="Invalid authorization header format")

    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Invalid authentication scheme")

    try:
        payload = jwt.decode(
            token,
            settings.bearer_token_secret,
            algorithms=[settings.jwt_algorithm]
        )
    except PyJWTError as e:
        raise AuthenticationError(detail=f"Token validation failed: {str(e)}")

    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError(detail="Invalid token payload")

    try:
        user_id = UUID(str(subject))
    except ValueError:
        raise AuthenticationError(detail="Token subject is not a user id")

    return {
        "user_id": user_id,
        "pseudo": payload.get("pseudo"),
        "roles": payload.get("roles", []),
    }


async def require_administrator(current_user: dict = Depends(get_current_user)) -> dict:
    """Allow only tokens carrying the administrator role."""
    if ADMINISTRATOR_ROLE not in current_user["roles"]:
        raise AuthorizationError(required_roles=[ADMINISTRATOR_ROLE])
    return current_user


RequiredAuth = Depends(get_current_user)
AdministratorAuth = Depends(require_administrator)
