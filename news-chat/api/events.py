"""
Real-time chat over a WebSocket.

Frames in both directions are JSON objects ``{"event": <name>, "data": <payload>}``.

Client events:
    join-session   data: sessionId
    leave-session  data: sessionId
    send-message   data: {sessionId, message, stream?}
    get-history    data: sessionId
    clear-session  data: sessionId

Server events:
    bot-typing, bot-chunk, bot-response  -> every member of the session room
    session-cleared                      -> the room and the sender
    history, error                       -> the sender only

Rooms are transport-level grouping kept in this process; session history
itself lives in the session store.
"""
import asyncio
import json
from collections import defaultdict
from functools import lru_cache
from typing import Any, Dict, Set

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from chat.query_orchestrator import QueryOrchestrator
from models.data_models import now_millis
from models.errors import NewsChatError, ValidationError
from services.dependencies import get_orchestrator, get_session_store
from services.session_store import SessionStore
from utils.logging_config import setup_logging
from utils.text_utils import is_blank

log = setup_logging("chat_events.log")

router = APIRouter(tags=["events"])


class ConnectionManager:
    """Tracks sockets, their session rooms, and in-flight message tasks."""

    def __init__(self):
        self.rooms: Dict[str, Set[WebSocket]] = defaultdict(set)
        self.memberships: Dict[WebSocket, Set[str]] = defaultdict(set)
        self.tasks: Set[asyncio.Task] = set()

    def join(self, websocket: WebSocket, session_id: str) -> None:
        self.rooms[session_id].add(websocket)
        self.memberships[websocket].add(session_id)

    def leave(self, websocket: WebSocket, session_id: str) -> None:
        members = self.rooms.get(session_id)
        if members is not None:
            members.discard(websocket)
            if not members:
                del self.rooms[session_id]
        self.memberships.get(websocket, set()).discard(session_id)

    def disconnect(self, websocket: WebSocket) -> None:
        for session_id in list(self.memberships.get(websocket, ())):
            self.leave(websocket, session_id)
        self.memberships.pop(websocket, None)

    def members(self, session_id: str) -> Set[WebSocket]:
        return set(self.rooms.get(session_id, ()))

    async def send(self, websocket: WebSocket, event: str, data: Any) -> bool:
        """Deliver one event; a closed socket just drops it."""
        try:
            await websocket.send_json({"event": event, "data": data})
            return True
        except (WebSocketDisconnect, RuntimeError) as e:
            log.info(f"Dropping '{event}' for a closed connection: {e}")
            self.disconnect(websocket)
            return False

    async def broadcast(self, session_id: str, event: str, data: Any, include: WebSocket = None) -> None:
        targets = self.members(session_id)
        if include is not None:
            targets.add(include)
        for websocket in targets:
            await self.send(websocket, event, data)

    def spawn(self, coro) -> asyncio.Task:
        """Run a pipeline detached from the socket; it finishes even if the client leaves."""
        task = asyncio.create_task(coro)
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
        return task


@lru_cache()
def get_connection_manager() -> ConnectionManager:
    return ConnectionManager()


def _session_id(data: Any) -> str:
    if isinstance(data, dict):
        data = data.get("sessionId")
    if is_blank(data) or not isinstance(data, str):
        raise ValidationError("Missing sessionId")
    return data


async def run_message(websocket: WebSocket, data: Dict[str, Any], orchestrator: QueryOrchestrator, manager: ConnectionManager) -> None:
    """Process one send-message event; never raises."""
    session_id = data["sessionId"]
    message = data["message"]
    await manager.broadcast(session_id, "bot-typing", True, include=websocket)

    async def on_chunk(chunk: str) -> None:
        await manager.broadcast(session_id, "bot-chunk", {"chunk": chunk}, include=websocket)

    try:
        if data.get("stream"):
            result = await orchestrator.stream_query(session_id, message, on_chunk)
        else:
            result = await orchestrator.process_query(session_id, message)
    except NewsChatError as e:
        log.error(f"❌ [{session_id}] Failed to process message: {e}")
        await manager.broadcast(session_id, "bot-typing", False, include=websocket)
        await manager.send(websocket, "error", {"message": "Failed to process message"})
        return
    except Exception as e:
        # Keep the socket alive whatever the pipeline did
        log.error(f"💥 [{session_id}] Unexpected failure: {e}", exc_info=True)
        await manager.broadcast(session_id, "bot-typing", False, include=websocket)
        await manager.send(websocket, "error", {"message": "Failed to process message"})
        return

    await manager.broadcast(session_id, "bot-typing", False, include=websocket)
    await manager.broadcast(session_id, "bot-response", {
        "message": result.response,
        "sources": [s.to_dict() for s in result.sources],
        "timestamp": now_millis(),
    }, include=websocket)


async def handle_event(
        websocket: WebSocket,
        event: str,
        data: Any,
        orchestrator: QueryOrchestrator,
        store: SessionStore,
        manager: ConnectionManager,
) -> None:
    if event == "join-session":
        session_id = _session_id(data)
        manager.join(websocket, session_id)
        log.info(f"User joined session {session_id}")

    elif event == "leave-session":
        manager.leave(websocket, _session_id(data))

    elif event == "send-message":
        if not isinstance(data, dict) or is_blank(data.get("sessionId")) or is_blank(data.get("message")):
            raise ValidationError("Missing sessionId or message")
        manager.spawn(run_message(websocket, data, orchestrator, manager))

    elif event == "get-history":
        session_id = _session_id(data)
        history = await store.read(session_id)
        await manager.send(websocket, "history", {
            "sessionId": session_id,
            "history": [turn.to_dict() for turn in history],
        })

    elif event == "clear-session":
        session_id = _session_id(data)
        success = await store.clear(session_id)
        await manager.broadcast(session_id, "session-cleared", {"sessionId": session_id, "success": success}, include=websocket)

    else:
        raise ValidationError(f"Unknown event: {event}")


@router.websocket("/ws")
async def chat_socket(
        websocket: WebSocket,
        orchestrator: QueryOrchestrator = Depends(get_orchestrator),
        store: SessionStore = Depends(get_session_store),
        manager: ConnectionManager = Depends(get_connection_manager),
):
    await websocket.accept()
    log.info("User connected")
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
                event = frame["event"]
                data = frame.get("data")
            except (ValueError, KeyError, TypeError, AttributeError):
                await manager.send(websocket, "error", {"message": "Malformed event"})
                continue

            try:
                await handle_event(websocket, event, data, orchestrator, store, manager)
            except ValidationError as e:
                await manager.send(websocket, "error", {"message": str(e)})
            except NewsChatError as e:
                log.error(f"Event '{event}' failed: {e}")
                await manager.send(websocket, "error", {"message": f"Failed to handle {event}"})
            except WebSocketDisconnect:
                raise
            except Exception as e:
                log.error(f"💥 Event '{event}' crashed: {e}", exc_info=True)
                await manager.send(websocket, "error", {"message": f"Failed to handle {event}"})
    except WebSocketDisconnect:
        log.info("User disconnected")
    finally:
        manager.disconnect(websocket)
