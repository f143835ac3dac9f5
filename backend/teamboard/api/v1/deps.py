# teamboard/api/v1/deps.py
import uuid

import jwt
from fastapi import Header, Request

from teamboard.core.errors import AuthenticationError
from teamboard.core.presence import PresenceTracker
from teamboard.core.pubsub import RoomRouter
from teamboard.core.security import decode_access_token
from teamboard.models.user import User


def bearer_token(request: Request, authorization: str | None) -> str | None:
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get("accessToken")
    return token


async def user_from_token(token: str | None) -> User:
    """
    Resolve a bearer token to its user.

    Raises:
        AuthenticationError: missing token, invalid/expired token, or unknown user
    """
    if not token:
        raise AuthenticationError("Authentication required", "AUTH_REQUIRED")
    try:
        payload = decode_access_token(token)
        user_id = uuid.UUID(str(payload.get("sub")))
    except (jwt.InvalidTokenError, ValueError):
        raise AuthenticationError("Invalid or expired token", "AUTH_INVALID_TOKEN") from None

    user = await User.get_or_none(id=user_id)
    if not user:
        raise AuthenticationError("User not found", "AUTH_USER_NOT_FOUND")
    return user


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    The token comes from the Authorization header (Bearer) or, as a fallback,
    from the HttpOnly `accessToken` cookie.

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            ...
    """
    return await user_from_token(bearer_token(request, authorization))


def get_rooms(request: Request) -> RoomRouter:
    return request.app.state.rooms


def get_presence(request: Request) -> PresenceTracker:
    return request.app.state.presence
