# teamboard/api/v1/routers/messages.py
import logging
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from tortoise.expressions import Q, Subquery
from tortoise.transactions import in_transaction

from teamboard.api.v1.deps import get_current_user, get_rooms
from teamboard.config import settings
from teamboard.core.errors import ValidationError
from teamboard.core.permissions import can_read_channel, require
from teamboard.core.pubsub import RoomEvent, RoomRouter, team_room
from teamboard.models import Message, Team, User
from teamboard.schemas.message import MarkReadIn, MessageCreateIn
from teamboard.services.hydration import message_out

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/messages", tags=["messages"])


async def _channel(team_id: uuid.UUID | None, user: User) -> Team | None:
    """
    Resolve and authorize a channel.

    Returns the team for a team channel, None for the general channel or for
    an orphaned team reference (see `_is_orphaned`).
    """
    if team_id is None:
        return None
    team = await Team.get_or_none(id=team_id)
    if team:
        member_ids = await team.members.all().values_list("id", flat=True)
        require(can_read_channel(user.id, team, member_ids), "Not a member of this team")
    return team


def _is_orphaned(team_id, team) -> bool:
    return team_id is not None and team is None


def _channel_query(team_id: uuid.UUID | None, team: Team | None, user: User):
    if team_id is None:
        return Message.filter(team_id__isnull=True)
    if _is_orphaned(team_id, team):
        # The team is gone; only the caller's own messages stay visible
        return Message.filter(team_id=team_id, user_id=user.id)
    return Message.filter(team_id=team_id)


async def _readable_team_ids(user: User) -> list:
    return await (
        Team.filter(Q(created_by_id=user.id) | Q(members__id=user.id))
        .distinct()
        .values_list("id", flat=True)
    )


def _unread_by(query, user: User):
    """Drop messages the user already read (evaluated in the database)."""
    read = Message.filter(read_by__id=user.id).values("id")
    return query.exclude(id__in=Subquery(read))


@router.get("")
async def list_messages(
    teamId: uuid.UUID | None = Query(default=None),
    user: User = Depends(get_current_user),
):
    """
    Chat history of one channel, oldest first.

    Only the most recent MESSAGE_HISTORY_LIMIT messages are returned.
    Without teamId this is the general channel.
    """
    team = await _channel(teamId, user)
    latest = await (
        _channel_query(teamId, team, user)
        .order_by("-created_at")
        .limit(settings.message_history_limit)
        .prefetch_related("read_by")
    )
    latest.reverse()
    data = [message_out(m, [u.id for u in m.read_by]) for m in latest]

    out = {"success": True, "count": len(data), "data": data}
    if _is_orphaned(teamId, team):
        out["orphaned"] = True
    return out


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_message(
    body: MessageCreateIn,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    rooms: RoomRouter = Depends(get_rooms),
):
    """
    Post a message to the general channel or to a team channel.

    The new message is pushed as `newMessage` to the team room, or to every
    connected session for the general channel.

    Raises:
        ValidationError (400): empty message or longer than MESSAGE_MAX_LENGTH
    """
    text = (body.message or "").strip()
    if not text:
        raise ValidationError("Please add a message")
    if len(text) > settings.message_max_length:
        raise ValidationError(f"Message cannot be more than {settings.message_max_length} characters")

    msg = await Message.create(user=user, username=user.username, message=text, team_id=body.teamId)
    data = message_out(msg)

    room = team_room(body.teamId) if body.teamId else None
    background_tasks.add_task(rooms.deliver, RoomEvent("newMessage", data, room))
    return {"success": True, "data": data}


@router.put("/mark-read")
async def mark_read(
    body: MarkReadIn,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    rooms: RoomRouter = Depends(get_rooms),
):
    """
    Add the caller to the read-by set of messages.

    - messageIds given: exactly those messages (all must exist and be readable)
    - otherwise: every unread message of the channel named by teamId

    Emits `messagesRead` globally when anything changed.
    """
    if body.messageIds:
        wanted = list(dict.fromkeys(body.messageIds))
        msgs = await Message.filter(id__in=wanted)
        found = {str(m.id) for m in msgs}
        missing = [str(i) for i in wanted if str(i) not in found]
        if missing:
            raise ValidationError([f"Unknown message: {i}" for i in missing])
        team_ids = {str(t) for t in await _readable_team_ids(user)}
        for m in msgs:
            readable = m.team_id is None or str(m.team_id) in team_ids or str(m.user_id) == str(user.id)
            require(readable, "Not a member of this team")
    else:
        team = await _channel(body.teamId, user)
        query = _channel_query(body.teamId, team, user).exclude(user_id=user.id)
        msgs = await _unread_by(query, user)

    async with in_transaction():
        for m in msgs:
            await m.read_by.add(user)

    message_ids = [str(m.id) for m in msgs]
    if message_ids:
        payload = {
            "userId": str(user.id),
            "teamId": str(body.teamId) if body.teamId else None,
            "messageIds": message_ids,
        }
        background_tasks.add_task(rooms.deliver, RoomEvent("messagesRead", payload))
    logger.debug("[messages] %s marked %d message(s) read", user.username, len(message_ids))
    return {"success": True, "count": len(message_ids), "data": {"messageIds": message_ids}}


@router.get("/unread/count")
async def unread_count(
    teamId: uuid.UUID | None = Query(default=None),
    user: User = Depends(get_current_user),
):
    """
    Number of messages the caller has not read.

    With teamId: that team channel only. Without: the general channel plus
    every team the caller belongs to. The caller's own messages never count.
    """
    if teamId is not None:
        team = await _channel(teamId, user)
        if _is_orphaned(teamId, team):
            return {"success": True, "data": {"teamId": str(teamId), "count": 0, "orphaned": True}}
        query = Message.filter(team_id=teamId)
    else:
        scope = Q(team_id__isnull=True)
        team_ids = await _readable_team_ids(user)
        if team_ids:
            scope = scope | Q(team_id__in=list(team_ids))
        query = Message.filter(scope)

    count = await _unread_by(query.exclude(user_id=user.id), user).count()
    return {"success": True, "data": {"teamId": str(teamId) if teamId else None, "count": count}}
