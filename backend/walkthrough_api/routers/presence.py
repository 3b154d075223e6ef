"""WebSocket endpoint for live presence on walkthroughs."""
from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from walkthrough_api.core.errors import AuthenticationError
from walkthrough_api.models import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["presence"])


def _authenticate(state, token: str) -> User:
    with state.database.session() as db:
        return state.accounts.user_from_token(db, token)


@router.websocket("/ws")
async def presence_socket(websocket: WebSocket):
    """Authenticate with ?token=<access token>, then exchange presence messages."""
    state = websocket.app.state
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        user = await run_in_threadpool(_authenticate, state, token)
    except AuthenticationError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    hub = state.presence_hub
    connection = await hub.connect(websocket, user)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except ValueError:
                logger.warning("Ignoring malformed WebSocket message from %s", user.id)
                continue
            if isinstance(data, dict):
                await hub.handle(connection, data)
    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(connection)
