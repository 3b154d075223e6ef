"""
Live presence on walkthroughs being edited.

Clients connect to /ws and send JSON messages:

    {"type": "join-walkthrough",   "walkthroughId": ...}
    {"type": "walkthrough-update", "walkthroughId": ..., "fieldName": ..., "fieldValue": ...}
    {"type": "leave-walkthrough",  "walkthroughId": ...}

join/leave broadcast {"type": "active-sessions", ...} to every connection;
updates are relayed to the other connections as {"type": "field-update", ...}.
Heartbeats are best-effort: a failed session write is logged and the
broadcast still goes out. The walkthrough id "new" (unsaved form) is never
persisted.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fastapi import WebSocket
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from starlette.websockets import WebSocketState

from walkthrough_api.db.session import Database
from walkthrough_api.models import User
from walkthrough_api.repositories import presence_repo
from walkthrough_api.schemas import ActiveSessionOut

logger = logging.getLogger(__name__)

UNSAVED_WALKTHROUGH = "new"


@dataclass
class Connection:
    websocket: WebSocket
    user: User


def _persistable(walkthrough_id: Optional[str]) -> bool:
    return bool(walkthrough_id) and walkthrough_id != UNSAVED_WALKTHROUGH


class PresenceService:
    """Session heartbeats in the database (sync; called from a threadpool by the hub)."""

    def __init__(self, database: Database):
        self.database = database

    def touch(self, walkthrough_id: str, user_id: str) -> None:
        try:
            with self.database.session() as db:
                presence_repo.touch_session(db, walkthrough_id, user_id)
        except SQLAlchemyError as exc:
            logger.warning("Presence heartbeat failed for %s on %s: %s", user_id, walkthrough_id, exc)

    def leave(self, walkthrough_id: str, user_id: str) -> None:
        try:
            with self.database.session() as db:
                presence_repo.deactivate_session(db, walkthrough_id, user_id)
        except SQLAlchemyError as exc:
            logger.warning("Presence deactivation failed for %s on %s: %s", user_id, walkthrough_id, exc)

    def active(self, walkthrough_id: str) -> List[Dict[str, Any]]:
        """Active sessions serialized for the wire (camelCase)."""
        try:
            with self.database.session() as db:
                sessions = presence_repo.active_sessions(db, walkthrough_id)
                return [ActiveSessionOut.model_validate(s).model_dump(mode="json", by_alias=True) for s in sessions]
        except SQLAlchemyError as exc:
            logger.warning("Could not read active sessions for %s: %s", walkthrough_id, exc)
            return []


class PresenceHub:
    def __init__(self, presence: PresenceService):
        self.presence = presence
        self._connections: List[Connection] = []
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket, user: User) -> Connection:
        await websocket.accept()
        connection = Connection(websocket, user)
        async with self._lock:
            self._connections.append(connection)
        logger.info("WebSocket connected: user %s", user.id)
        return connection

    async def disconnect(self, connection: Connection) -> None:
        async with self._lock:
            if connection in self._connections:
                self._connections.remove(connection)
        logger.info("WebSocket closed: user %s", connection.user.id)

    async def _send(self, connection: Connection, message: Dict[str, Any]) -> None:
        if connection.websocket.client_state != WebSocketState.CONNECTED:
            return
        try:
            await connection.websocket.send_json(message)
        except (RuntimeError, ConnectionError) as exc:
            logger.debug("Dropping send to user %s: %s", connection.user.id, exc)

    async def broadcast(self, message: Dict[str, Any], exclude: Optional[Connection] = None) -> None:
        async with self._lock:
            targets = [c for c in self._connections if c is not exclude]
        for connection in targets:
            await self._send(connection, message)

    async def _active_sessions_message(self, walkthrough_id: Optional[str]) -> Dict[str, Any]:
        sessions = await run_in_threadpool(self.presence.active, walkthrough_id) if _persistable(walkthrough_id) else []
        return {"type": "active-sessions", "walkthroughId": walkthrough_id, "sessions": sessions}

    async def handle(self, connection: Connection, data: Dict[str, Any]) -> None:
        kind = data.get("type")
        walkthrough_id = data.get("walkthroughId")
        user_id = connection.user.id

        if kind == "join-walkthrough":
            if _persistable(walkthrough_id):
                await run_in_threadpool(self.presence.touch, walkthrough_id, user_id)
            await self.broadcast(await self._active_sessions_message(walkthrough_id))
        elif kind == "walkthrough-update":
            if _persistable(walkthrough_id):
                await run_in_threadpool(self.presence.touch, walkthrough_id, user_id)
            await self.broadcast(
                {
                    "type": "field-update",
                    "walkthroughId": walkthrough_id,
                    "fieldName": data.get("fieldName"),
                    "fieldValue": data.get("fieldValue"),
                    "updatedBy": user_id,
                },
                exclude=connection,
            )
        elif kind == "leave-walkthrough":
            if _persistable(walkthrough_id):
                await run_in_threadpool(self.presence.leave, walkthrough_id, user_id)
            await self.broadcast(await self._active_sessions_message(walkthrough_id))
        else:
            logger.debug("Ignoring WebSocket message type %r from %s", kind, user_id)
