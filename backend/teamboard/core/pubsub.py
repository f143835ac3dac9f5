# teamboard/core/pubsub.py
"""
PubSub (Publish-Subscribe) module for realtime event fan-out.
Keeps a registry of live WebSocket connections and the named rooms each one
has joined, and delivers domain events to a single room or to every
connected session.
"""
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set

from fastapi.encoders import jsonable_encoder
from starlette.websockets import WebSocket

logger = logging.getLogger("uvicorn.error")


def team_room(team_id) -> str:
    return f"team-{team_id}"


def project_room(project_id) -> str:
    return f"project-{project_id}"


@dataclass
class RoomEvent:
    """
    A domain event bound to its broadcast scope.

    room=None means the event goes to every connected session.
    """
    name: str
    data: Any
    room: Optional[str] = None


class RoomRouter:
    """
    Room-scoped broadcaster for WebSocket connections.

    Architecture:
    - Router is responsible for ws.accept(); this class only handles registration and delivery
    - A connection joins and leaves rooms only when the client asks
    - Delivery is best-effort: a failing socket is skipped, nothing is queued or replayed

    Data structure:
    - _connections: Dict[connection_id, WebSocket]
    - _rooms: Dict[room_name, Set[connection_id]]
    """
    def __init__(self):
        self._connections: Dict[str, WebSocket] = {}
        self._rooms: Dict[str, Set[str]] = {}

    # -------- connection registry --------
    def connect(self, ws: WebSocket) -> str:
        """
        Register an accepted WebSocket and return its connection id.
        """
        sid = uuid.uuid4().hex
        self._connections[sid] = ws
        return sid

    def disconnect(self, sid: str) -> None:
        """
        Forget a connection and remove it from every room it joined.
        """
        self._connections.pop(sid, None)
        for room in list(self._rooms):
            members = self._rooms[room]
            members.discard(sid)
            if not members:
                del self._rooms[room]

    def is_connected(self, sid: str) -> bool:
        return sid in self._connections

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    # -------- rooms --------
    def join(self, sid: str, room: str) -> None:
        if sid not in self._connections:
            return
        self._rooms.setdefault(room, set()).add(sid)

    def leave(self, sid: str, room: str) -> None:
        members = self._rooms.get(room)
        if not members:
            return
        members.discard(sid)
        if not members:
            del self._rooms[room]

    def rooms_of(self, sid: str) -> Set[str]:
        return {room for room, members in self._rooms.items() if sid in members}

    def members_of(self, room: str) -> Set[str]:
        return set(self._rooms.get(room, set()))

    # -------- publish --------
    async def to_room(self, room: str, event: str, data: Any) -> int:
        """
        Send an event to every connection that joined `room`.

        Returns:
            Number of connections the frame was handed to
        """
        return await self._send(self.members_of(room), event, data)

    async def broadcast(self, event: str, data: Any) -> int:
        """
        Send an event to every connected session.
        """
        return await self._send(set(self._connections), event, data)

    async def deliver(self, evt: RoomEvent) -> int:
        if evt.room is None:
            return await self.broadcast(evt.name, evt.data)
        return await self.to_room(evt.room, evt.name, evt.data)

    async def _send(self, sids: Set[str], event: str, data: Any) -> int:
        msg = json.dumps({"type": event, "data": jsonable_encoder(data)})
        delivered = 0
        for sid in sids:
            ws = self._connections.get(sid)
            if ws is None:
                continue
            try:
                await ws.send_text(msg)
                delivered += 1
            except Exception as e:
                # Connection may already be closed; its disconnect handler cleans up
                logger.warning("[pubsub] drop %s for %s: %r", event, sid, e)
        logger.debug("[pubsub] %s delivered to %d/%d", event, delivered, len(sids))
        return delivered
