"""In-process real-time relay.

Every authenticated WebSocket is wrapped in a ``Connection`` and tracked in
named rooms: ``user:<id>`` and, for school members, ``school:<id>`` on
connect; ``community`` and ``quiz:<id>`` on request. Frames in both
directions are JSON objects of the form ``{"event": ..., "data": ...}``.

The hub only knows identity and room membership. Nothing is persisted and
nothing is delivered to sockets that are not connected at emit time.
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, Set

import pytz
from fastapi import WebSocketDisconnect

from config import COMMUNITY_ROOM, ROOM_PREFIXES, SCHOOL_ROLES

logger = logging.getLogger(__name__)

# Resolves a user ID to a display name, or None if there is no such user
RecipientLookup = Callable[[str], Awaitable[Optional[str]]]


def user_room(user_id: str) -> str:
    return f"{ROOM_PREFIXES['user']}{user_id}"


def school_room(school_id: str) -> str:
    return f"{ROOM_PREFIXES['school']}{school_id}"


def quiz_room(quiz_id: str) -> str:
    return f"{ROOM_PREFIXES['quiz']}{quiz_id}"


@dataclass(eq=False)
class Connection:
    """One connected socket and the identity it authenticated as.

    ``websocket`` is anything with an async ``send_json``.
    """

    websocket: Any
    user_id: str
    full_name: str
    role: str
    school_id: Optional[str] = None
    rooms: Set[str] = field(default_factory=set)


class RealtimeHub:
    """Routes events between connected sockets by room."""

    def __init__(self):
        self._rooms: Dict[str, Set[Connection]] = defaultdict(set)

    def members(self, room: str) -> Set[Connection]:
        return set(self._rooms.get(room, ()))

    def join(self, conn: Connection, room: str) -> None:
        self._rooms[room].add(conn)
        conn.rooms.add(room)

    def leave(self, conn: Connection, room: str) -> None:
        members = self._rooms.get(room)
        if members is not None:
            members.discard(conn)
            if not members:
                del self._rooms[room]
        conn.rooms.discard(room)

    def connect(self, conn: Connection) -> None:
        """Register a new connection in its personal and school rooms."""
        self.join(conn, user_room(conn.user_id))
        if conn.school_id and conn.role in SCHOOL_ROLES:
            self.join(conn, school_room(conn.school_id))
        logger.info("User connected: %s (%s)", conn.full_name, conn.user_id)

    def disconnect(self, conn: Connection) -> None:
        for room in list(conn.rooms):
            self.leave(conn, room)
        logger.info("User disconnected: %s (%s)", conn.full_name, conn.user_id)

    async def _send(self, conn: Connection, event: str, data: Any) -> bool:
        try:
            await conn.websocket.send_json({"event": event, "data": data})
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.warning("Dropping connection of %s: %s", conn.user_id, e)
            self.disconnect(conn)
            return False
        return True

    async def emit(
        self,
        room: str,
        event: str,
        data: Any,
        exclude: Optional[Connection] = None,
    ) -> int:
        """Send an event to every connection in a room.

        Returns:
            Number of connections the event was written to.
        """
        delivered = 0
        for conn in self.members(room):
            if conn is exclude:
                continue
            if await self._send(conn, event, data):
                delivered += 1
        return delivered

    async def emit_to_user(self, user_id: str, event: str, data: Any) -> int:
        return await self.emit(user_room(user_id), event, data)

    async def emit_to_community(self, event: str, data: Any) -> int:
        return await self.emit(COMMUNITY_ROOM, event, data)

    async def emit_to_quiz_room(self, quiz_id: str, event: str, data: Any) -> int:
        return await self.emit(quiz_room(quiz_id), event, data)

    async def emit_to_school(self, school_id: str, event: str, data: Any) -> int:
        return await self.emit(school_room(school_id), event, data)

    async def handle_event(
        self,
        conn: Connection,
        event: str,
        data: Any,
        lookup_recipient: RecipientLookup,
    ) -> None:
        """Dispatch one client frame.

        Unknown events are ignored. Malformed private messages are answered
        with an ``error`` event on the sender's socket.
        """
        if event == "private_message":
            await self._private_message(conn, data, lookup_recipient)
        elif event in ("typing_start", "typing_stop"):
            recipient_id = data.get("recipient_id") if isinstance(data, dict) else None
            if recipient_id:
                await self.emit(
                    user_room(recipient_id),
                    "user_typing",
                    {
                        "user_id": conn.user_id,
                        "user_name": conn.full_name,
                        "is_typing": event == "typing_start",
                    },
                    exclude=conn,
                )
        elif event == "join_community":
            self.join(conn, COMMUNITY_ROOM)
            logger.info("%s joined community room", conn.full_name)
        elif event == "leave_community":
            self.leave(conn, COMMUNITY_ROOM)
            logger.info("%s left community room", conn.full_name)
        elif event in ("join_quiz_room", "leave_quiz_room"):
            quiz_id = data.get("quiz_id") if isinstance(data, dict) else data
            if not isinstance(quiz_id, str) or not quiz_id:
                await self._send(conn, "error", {"message": "quiz_id is required"})
                return
            if event == "join_quiz_room":
                self.join(conn, quiz_room(quiz_id))
                logger.info("%s joined quiz room: %s", conn.full_name, quiz_id)
            else:
                self.leave(conn, quiz_room(quiz_id))
                logger.info("%s left quiz room: %s", conn.full_name, quiz_id)
        else:
            logger.debug("Ignoring unknown event %r from %s", event, conn.user_id)

    async def _private_message(
        self, conn: Connection, data: Any, lookup_recipient: RecipientLookup
    ) -> None:
        if not isinstance(data, dict):
            await self._send(conn, "error", {"message": "Invalid message"})
            return
        recipient_id = data.get("recipient_id")
        message = data.get("message")
        if not recipient_id or not isinstance(message, str) or not message:
            await self._send(conn, "error", {"message": "recipient_id and message are required"})
            return

        recipient_name = await lookup_recipient(recipient_id)
        if recipient_name is None:
            await self._send(conn, "error", {"message": "Recipient not found"})
            return

        payload = {
            "id": str(int(time.time() * 1000)),
            "sender_id": conn.user_id,
            "sender_name": conn.full_name,
            "recipient_id": recipient_id,
            "recipient_name": recipient_name,
            "message": message,
            "message_type": data.get("message_type") or "text",
            "timestamp": datetime.now(pytz.utc).isoformat(),
        }
        await self.emit(user_room(recipient_id), "private_message", payload, exclude=conn)
        await self._send(conn, "message_sent", payload)
        logger.info("Private message from %s to %s", conn.user_id, recipient_id)
