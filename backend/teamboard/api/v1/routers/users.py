# teamboard/api/v1/routers/users.py
import uuid

from fastapi import APIRouter, Depends

from teamboard.api.v1.deps import get_current_user
from teamboard.core.errors import NotFoundError
from teamboard.models.user import User
from teamboard.services.hydration import user_brief, user_status

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(get_current_user)])


@router.get("")
async def list_users():
    """
    All users (id and username only), sorted by username.
    Used to pick team members, project members and assignees.
    """
    users = await User.all().order_by("username")
    return {"success": True, "count": len(users), "data": [user_brief(u) for u in users]}


@router.get("/online")
async def list_online_users():
    users = await User.filter(is_online=True).order_by("username")
    return {"success": True, "count": len(users), "data": [user_status(u) for u in users]}


@router.get("/{user_id}/status")
async def get_user_status(user_id: uuid.UUID):
    user = await User.get_or_none(id=user_id)
    if not user:
        raise NotFoundError("User not found")
    return {"success": True, "data": user_status(user)}
