"""Real-time WebSocket route.

Clients connect to ``/ws?token=<jwt>`` (or send the token as a bearer
Authorization header) and then exchange ``{"event", "data"}`` JSON frames
with the hub.

A socket lives far longer than a request, so it holds no database session.
Each user lookup opens its own session in the threadpool.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from api.routes.auth import decode_access_token
from core.database import get_session_factory
from core.dependencies import RealtimeHubDep
from schemas.user import User
from utils.realtime_hub import Connection
from utils.user_manager import UserManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


def _handshake_token(websocket: WebSocket, token: Optional[str]) -> Optional[str]:
    if token:
        return token
    authorization = websocket.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return None


async def find_active_user(session_factory: sessionmaker, user_id: str) -> Optional[User]:
    """Load an active user without blocking the event loop."""

    def load() -> Optional[User]:
        with session_factory() as db:
            return UserManager(db).get_user_by_id(user_id)

    user = await run_in_threadpool(load)
    if user is None or not user.is_active:
        return None
    return user


@router.websocket("/ws")
async def realtime(
    websocket: WebSocket,
    token: Optional[str] = Query(default=None),
    session_factory: sessionmaker = Depends(get_session_factory),
    hub: RealtimeHubDep = None,
) -> None:
    """Authenticate a socket and relay its events until it disconnects."""
    raw_token = _handshake_token(websocket, token)
    user_id = decode_access_token(raw_token) if raw_token else None
    user = await find_active_user(session_factory, user_id) if user_id else None
    if user is None:
        logger.warning("Rejected WebSocket handshake: invalid or missing token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    async def lookup_recipient(recipient_id: str) -> Optional[str]:
        recipient = await find_active_user(session_factory, recipient_id)
        return recipient.full_name if recipient else None

    await websocket.accept()
    conn = Connection(
        websocket=websocket,
        user_id=user.user_id,
        full_name=user.full_name,
        role=user.role,
        school_id=user.school_id,
    )
    hub.connect(conn)
    try:
        while True:
            text = await websocket.receive_text()
            try:
                frame = json.loads(text)
            except ValueError:
                frame = None
            if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                await websocket.send_json(
                    {"event": "error", "data": {"message": "Invalid frame"}}
                )
                continue
            await hub.handle_event(conn, frame["event"], frame.get("data"), lookup_recipient)
    except WebSocketDisconnect as e:
        logger.debug("Socket of %s closed (code %s)", user.user_id, e.code)
    finally:
        hub.disconnect(conn)
