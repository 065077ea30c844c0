"""WebSocket table driver with live game events."""

import asyncio
import json
from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from typing import Any

from api.routes.table import get_game, save_game, standings_response, table_state_response
from core.errors import PreconditionError
from core.game import BlackjackGame, Decision
from core.game.events import GameEvent, EventType
from logging_utils import get_logger

logger = get_logger(__name__)

router = APIRouter()


class ConnectionManager:
    """Manage WebSocket connections and their event queues."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._event_queues: dict[str, asyncio.Queue] = {}
        self._handlers: dict[str, Any] = {}

    async def connect(self, websocket: WebSocket, session_id: str) -> None:
        """Accept and register a new connection."""
        await websocket.accept()
        self._connections[session_id] = websocket
        self._event_queues[session_id] = asyncio.Queue()

    def attach(self, session_id: str, game: BlackjackGame) -> None:
        """Forward every event of ``game`` to the session's queue."""
        handler = self._handlers.get(session_id)
        if handler is not None:
            game.events.unsubscribe(handler)

        def handler(event: GameEvent) -> None:
            self._queue_event(session_id, event)

        self._handlers[session_id] = handler
        game.subscribe(handler)

    def disconnect(self, session_id: str, game: BlackjackGame | None = None) -> None:
        """Remove a connection; the table itself stays in the store."""
        handler = self._handlers.pop(session_id, None)
        if game is not None and handler is not None:
            game.events.unsubscribe(handler)
        self._connections.pop(session_id, None)
        self._event_queues.pop(session_id, None)

    def _queue_event(self, session_id: str, event: GameEvent) -> None:
        """Queue an event for async delivery."""
        queue = self._event_queues.get(session_id)
        if queue is not None:
            queue.put_nowait(event)

    async def next_event(self, session_id: str) -> GameEvent | None:
        """Get the next queued event, if one is already waiting."""
        queue = self._event_queues.get(session_id)
        if queue is None or queue.empty():
            return None
        return queue.get_nowait()

    async def send_message(self, session_id: str, message: dict[str, Any]) -> None:
        """Send a message to a specific session."""
        websocket = self._connections.get(session_id)
        if websocket is not None:
            await websocket.send_json(message)


# Global connection manager
manager = ConnectionManager()


def _state_message(game: BlackjackGame) -> dict[str, Any]:
    return {"type": "state_update", "state": table_state_response(game).model_dump()}


def _event_to_message(event: GameEvent, game: BlackjackGame) -> dict[str, Any]:
    """Convert a game event to a WebSocket message."""
    message = {
        "type": "event",
        "event_type": event.event_type.name,
        "data": event.data,
    }
    if event.event_type == EventType.GAME_ENDED:
        message["standings"] = [s.model_dump() for s in standings_response(game)]
    return message


async def _flush_events(session_id: str, game: BlackjackGame) -> None:
    """Send every event queued so far, oldest first."""
    while True:
        event = await manager.next_event(session_id)
        if event is None:
            break
        await manager.send_message(session_id, _event_to_message(event, game))


def _apply(game: BlackjackGame, message: dict[str, Any]) -> str | None:
    """
    Apply one client message to the table.

    Returns:
        An error text for the client, or None on success
    """
    msg_type = message.get("type")

    if msg_type == "get_state":
        return None
    if msg_type == "start_round":
        game.start_round()
        return None
    if msg_type == "action":
        action = message.get("action")
        try:
            decision = Decision(action)
        except ValueError:
            return f"Unknown action: {action}"
        game.decide(decision)
        return None
    if msg_type == "end_game":
        game.end_game()
        return None
    return f"Unknown message type: {msg_type}"


@router.websocket("/table/{session_id}")
async def table_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint driving one table.

    Messages from client:
    - {"type": "get_state"}
    - {"type": "start_round"}
    - {"type": "action", "action": "hit"|"stand"}
    - {"type": "end_game"}

    Messages to client:
    - {"type": "state_update", "state": {...}}
    - {"type": "event", "event_type": "...", "data": {...}}
    - {"type": "error", "message": "..."}
    """
    await manager.connect(websocket, session_id)

    try:
        game = await get_game(session_id)
    except HTTPException as e:
        await manager.send_message(session_id, {"type": "error", "message": e.detail})
        await websocket.close()
        manager.disconnect(session_id)
        return

    manager.attach(session_id, game)
    await manager.send_message(session_id, _state_message(game))

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                message = None
            if not isinstance(message, dict):
                await manager.send_message(session_id, {"type": "error", "message": "Invalid JSON"})
                continue

            try:
                error = _apply(game, message)
            except PreconditionError as e:
                logger.warning("Rejected %s: %s", message.get("type"), e)
                error = str(e)

            # A rejected command may still have moved the table
            await save_game(session_id, game)
            await _flush_events(session_id, game)

            if error is not None:
                await manager.send_message(session_id, {"type": "error", "message": error})
            else:
                await manager.send_message(session_id, _state_message(game))

    except WebSocketDisconnect:
        logger.debug("Session disconnected")
    finally:
        manager.disconnect(session_id, game)
