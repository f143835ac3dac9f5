# teamboard/api/v1/routers/auth.py
from fastapi import APIRouter, BackgroundTasks, Depends, Response, status

from teamboard.api.v1.deps import get_current_user, get_presence, get_rooms
from teamboard.config import settings
from teamboard.core.errors import AuthenticationError, ValidationError
from teamboard.core.presence import PresenceTracker
from teamboard.core.pubsub import RoomRouter
from teamboard.core.security import verify_password, create_access_token, hash_password
from teamboard.core.timeutil import iso, utc_now
from teamboard.models.user import USERNAME_MAX_LENGTH, User
from teamboard.schemas.auth import LoginRequest, RegisterIn

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_payload(user: User) -> dict:
    return {
        "id": str(user.id),
        "username": user.username,
        "token": create_access_token(str(user.id), user.username),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn, response: Response):
    """
    Register a new user account.

    Returns:
        dict: {"success": True, "data": {id, username, token}}

    Raises:
        ValidationError (400): missing username/password, password too short,
            or username already taken
    """
    username = (body.username or "").strip()
    if not username or not body.password:
        raise ValidationError("Please provide username and password")
    if len(username) > USERNAME_MAX_LENGTH:
        raise ValidationError(f"Username cannot be more than {USERNAME_MAX_LENGTH} characters")
    if len(body.password) < settings.min_password_length:
        raise ValidationError(f"Password must be at least {settings.min_password_length} characters")
    if await User.get_or_none(username=username):
        raise ValidationError("Username already exists", "USERNAME_EXISTS")

    u = await User.create(username=username, password_hash=hash_password(body.password))
    data = _auth_payload(u)
    response.set_cookie("accessToken", data["token"], httponly=True, secure=False, samesite="lax")
    return {"success": True, "data": data, "message": "User registered successfully"}


@router.post("/login")
async def login(payload: LoginRequest, response: Response):
    """
    Authenticate user and issue a bearer token.

    The same error is returned for an unknown username and for a wrong
    password so that usernames cannot be enumerated.

    Raises:
        ValidationError (400): missing username/password
        AuthenticationError (401): AUTH_INVALID_CREDENTIALS
    """
    if not payload.username or not payload.password:
        raise ValidationError("Please provide username and password")
    user = await User.get_or_none(username=payload.username.strip())
    if not user or not verify_password(payload.password, user.password_hash):
        raise AuthenticationError("Invalid credentials", "AUTH_INVALID_CREDENTIALS")

    user.last_seen = utc_now()
    await user.save(update_fields=["last_seen"])
    data = _auth_payload(user)
    response.set_cookie("accessToken", data["token"], httponly=True, secure=False, samesite="lax")
    return {"success": True, "data": data, "message": "Login successful"}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    """
    Get current authenticated user information.
    """
    return {"success": True, "data": {
        "id": str(user.id),
        "username": user.username,
        "isOnline": user.is_online,
        "lastSeen": iso(user.last_seen),
    }}


@router.post("/logout")
async def logout(
    response: Response,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    presence: PresenceTracker = Depends(get_presence),
    rooms: RoomRouter = Depends(get_rooms),
):
    """
    Log out: clear the cookie and mark the user offline.

    Note:
        The JWT itself stays valid until it expires.
    """
    if user.is_online or user.socket_id:
        payload = await presence.mark_offline(user, broadcast=False)
        background_tasks.add_task(rooms.broadcast, "userStatusChanged", payload)
    response.delete_cookie("accessToken")
    return {"success": True}
