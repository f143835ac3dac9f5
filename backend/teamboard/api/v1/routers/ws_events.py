# teamboard/api/v1/routers/ws_events.py
import json
import logging
import uuid

from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketDisconnect

from teamboard.api.v1.deps import user_from_token
from teamboard.core.errors import ApiError
from teamboard.core.permissions import can_view_project, can_view_team
from teamboard.core.presence import PresenceTracker
from teamboard.core.pubsub import RoomRouter, project_room, team_room
from teamboard.models import Project, Team

logger = logging.getLogger("uvicorn.error")

router = APIRouter()

# Client frame type -> (id field, room builder, model, read predicate)
_JOIN = {
    "joinTeam": ("teamId", team_room, Team, can_view_team),
    "joinProject": ("projectId", project_room, Project, can_view_project),
}
_LEAVE = {
    "leaveTeam": ("teamId", team_room),
    "leaveProject": ("projectId", project_room),
}


class FrameError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


async def _send(ws: WebSocket, kind: str, data: dict) -> None:
    await ws.send_text(json.dumps({"type": kind, "data": data}))


def _parse_id(msg: dict, field: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(msg.get(field)))
    except ValueError:
        raise FrameError("VALIDATION_ERROR", f"{field} must be a valid id")


async def _join(sid: str, msg: dict, rooms: RoomRouter, presence: PresenceTracker) -> str:
    field, room_of, model, can_view = _JOIN[msg["type"]]
    user_id = presence.user_for(sid)
    if user_id is None:
        raise FrameError("AUTH_REQUIRED", "Send userOnline before joining rooms")
    target_id = _parse_id(msg, field)

    target = await model.get_or_none(id=target_id)
    if not target:
        raise FrameError("NOT_FOUND", f"{model.__name__} not found")
    member_ids = await target.members.all().values_list("id", flat=True)
    if not can_view(user_id, target, member_ids):
        raise FrameError("FORBIDDEN", "Access denied")

    room = room_of(target_id)
    rooms.join(sid, room)
    return room


@router.websocket("/ws/events")
async def ws_events(ws: WebSocket):
    """
    Realtime channel for presence, chat and kanban events.

    Message flow:
    1. Client connects; the connection has no identity yet
    2. Client sends: {"type": "userOnline", "token": "..."}
       -> the user is marked online, `userStatusChanged` is broadcast
    3. Client sends: {"type": "joinTeam", "teamId": "..."} or
       {"type": "joinProject", "projectId": "..."}
       -> server replies {"type": "joined", "data": {"room": ...}}
    4. Server pushes room-scoped events ({"type": event, "data": payload})
    5. On close the user is marked offline (only if step 2 happened)

    Bad frames are answered with {"type": "error", "data": {"code", "message"}};
    the socket stays open.
    """
    rooms: RoomRouter = ws.app.state.rooms
    presence: PresenceTracker = ws.app.state.presence

    await ws.accept()
    sid = rooms.connect(ws)
    logger.info("[ws_events] connected %s", sid)
    try:
        while True:
            raw = await ws.receive_text()
            try:
                msg = json.loads(raw)
                if not isinstance(msg, dict):
                    raise FrameError("VALIDATION_ERROR", "Frame must be a JSON object")
                kind = msg.get("type")

                if kind == "userOnline":
                    user = await user_from_token(msg.get("token"))
                    await presence.announce(sid, user)
                elif kind in _JOIN:
                    room = await _join(sid, msg, rooms, presence)
                    await _send(ws, "joined", {"room": room})
                elif kind in _LEAVE:
                    field, room_of = _LEAVE[kind]
                    room = room_of(_parse_id(msg, field))
                    rooms.leave(sid, room)
                    await _send(ws, "left", {"room": room})
                else:
                    raise FrameError("VALIDATION_ERROR", f"Unknown event type: {kind}")
            except json.JSONDecodeError:
                await _send(ws, "error", {"code": "VALIDATION_ERROR", "message": "Invalid JSON"})
            except FrameError as e:
                await _send(ws, "error", {"code": e.code, "message": e.message})
            except ApiError as e:
                await _send(ws, "error", dict(e.detail))
    except WebSocketDisconnect:
        logger.info("[ws_events] disconnected %s", sid)
    finally:
        rooms.disconnect(sid)
        await presence.disconnect(sid)
