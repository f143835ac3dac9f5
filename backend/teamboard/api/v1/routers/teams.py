# teamboard/api/v1/routers/teams.py
import logging
import uuid

from fastapi import APIRouter, Depends, status
from tortoise.expressions import Q
from tortoise.transactions import in_transaction

from teamboard.api.v1.deps import get_current_user
from teamboard.core.errors import NotFoundError
from teamboard.core.permissions import can_manage_team, can_view_team, require
from teamboard.models import Team, User
from teamboard.schemas.team import TeamCreateIn, TeamMembersIn
from teamboard.services.hydration import load_users, team_out

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/teams", tags=["teams"])


async def _load_team(team_id: uuid.UUID) -> Team:
    team = await Team.get_or_none(id=team_id)
    if not team:
        raise NotFoundError("Team not found")
    return team


@router.get("")
async def list_teams(user: User = Depends(get_current_user)):
    """
    Teams the user created or belongs to, newest first.
    """
    teams = await (
        Team.filter(Q(created_by_id=user.id) | Q(members__id=user.id))
        .distinct()
        .order_by("-created_at")
    )
    data = [await team_out(t) for t in teams]
    return {"success": True, "count": len(data), "data": data}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_team(body: TeamCreateIn, user: User = Depends(get_current_user)):
    """
    Create a team. The creator is automatically a member.
    """
    async with in_transaction():
        team = await Team.create(name=body.name.strip(), description=body.description, created_by=user)
        await team.members.add(user)
    return {"success": True, "data": await team_out(team)}


@router.get("/{team_id}")
async def get_team(team_id: uuid.UUID, user: User = Depends(get_current_user)):
    team = await _load_team(team_id)
    member_ids = await team.members.all().values_list("id", flat=True)
    require(can_view_team(user.id, team, member_ids))
    return {"success": True, "data": await team_out(team)}


@router.put("/{team_id}/members")
async def add_members(team_id: uuid.UUID, body: TeamMembersIn, user: User = Depends(get_current_user)):
    """
    Add members to a team (creator only). Existing members are skipped.

    Raises:
        NotFoundError (404): team does not exist
        AuthorizationError (403): caller is not the creator
        ValidationError (400): an id does not name an existing user
    """
    team = await _load_team(team_id)
    require(can_manage_team(user.id, team), "Only team creator can add members")

    new_members = await load_users(body.members)
    current = {str(i) for i in await team.members.all().values_list("id", flat=True)}
    to_add = [u for u in new_members if str(u.id) not in current]
    if to_add:
        await team.members.add(*to_add)
    return {"success": True, "data": await team_out(team)}


@router.delete("/{team_id}")
async def delete_team(team_id: uuid.UUID, user: User = Depends(get_current_user)):
    """
    Delete a team (creator only).

    Messages sent to the team are kept; their team reference becomes orphaned.
    """
    team = await _load_team(team_id)
    require(can_manage_team(user.id, team), "Only team creator can delete team")
    await team.delete()
    logger.info("[teams] team %s deleted by %s", team_id, user.username)
    return {"success": True, "data": {}}
