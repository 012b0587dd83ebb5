"""Real-time incident change feed over WebSocket."""

import asyncio
import json
from datetime import datetime, timezone

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ...dependencies import get_app_config, get_event_bus
from ...utils.logging import get_logger

logger = get_logger("websocket.events")

router = APIRouter()


class ConnectionManager:
    """Manages active WebSocket connections with backpressure and heartbeat."""

    def __init__(self, max_connections: int = 100, queue_size: int = 100, heartbeat_interval: int = 30):
        self._connections: dict[WebSocket, asyncio.Queue] = {}
        self._writer_tasks: dict[WebSocket, asyncio.Task] = {}
        self._max_connections = max_connections
        self._queue_size = queue_size
        self._heartbeat_interval = heartbeat_interval

    async def connect(self, websocket: WebSocket) -> bool:
        """Accept connection if under limit. Returns False if rejected."""
        if len(self._connections) >= self._max_connections:
            await websocket.close(code=1013)  # Try Again Later
            logger.warning("ws_connection_rejected", reason="max_connections", total=len(self._connections))
            return False
        await websocket.accept()
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._connections[websocket] = queue
        self._writer_tasks[websocket] = asyncio.create_task(self._writer(websocket, queue))
        logger.info("ws_client_connected", total=len(self._connections))
        return True

    async def disconnect(self, websocket: WebSocket) -> None:
        """Remove connection and cancel its writer task."""
        if self._connections.pop(websocket, None) is None:
            return
        task = self._writer_tasks.pop(websocket, None)
        if task and not task.done():
            task.cancel()
        try:
            await websocket.close()
        except RuntimeError as e:
            # Already closed by the client
            logger.debug("ws_close_failed", error=str(e))
        logger.info("ws_client_disconnected", total=len(self._connections))

    async def broadcast(self, message: dict) -> None:
        """Non-blocking broadcast: enqueue message to all connections."""
        text = json.dumps(message, default=str)
        lagging = []
        for ws, queue in list(self._connections.items()):
            try:
                queue.put_nowait(text)
            except asyncio.QueueFull:
                lagging.append(ws)
                logger.warning("ws_client_backpressure_disconnect")
        for ws in lagging:
            await self.disconnect(ws)

    async def on_store_event(self, notification: dict) -> None:
        """EventBus listener: forward incident changes to every client."""
        await self.broadcast({
            "type": "incident_update",
            "data": notification,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    async def close_all(self) -> None:
        for ws in list(self._connections.keys()):
            await self.disconnect(ws)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def _writer(self, websocket: WebSocket, queue: asyncio.Queue) -> None:
        """Per-connection writer coroutine that drains the queue."""
        try:
            while True:
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=self._heartbeat_interval)
                    await websocket.send_text(message)
                except asyncio.TimeoutError:
                    await websocket.send_text(json.dumps({
                        "type": "heartbeat",
                        "timestamp": datetime.now(timezone.utc).isoformat(),
                    }))
        except asyncio.CancelledError:
            return
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug("ws_writer_stopped", error=str(e))


_config = get_app_config()
manager = ConnectionManager(
    max_connections=_config.ws_max_connections,
    queue_size=_config.ws_queue_size,
    heartbeat_interval=_config.ws_heartbeat_interval,
)


@router.websocket("/ws/incidents")
async def websocket_incidents(websocket: WebSocket):
    """Stream incident change notifications.

    Messages are JSON:
    {
        "type": "connected" | "incident_update" | "heartbeat",
        "data": {"event": "incident_created", "incident_id": "...", ...},
        "timestamp": "ISO 8601"
    }
    A client may send "history" to receive the most recent notifications, or
    "history <incident_id>" for one incident.
    """
    connected = await manager.connect(websocket)
    if not connected:
        return

    await websocket.send_text(json.dumps({
        "type": "connected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }))

    try:
        while True:
            command, _, incident_id = (await websocket.receive_text()).strip().partition(" ")
            if command == "history":
                await websocket.send_text(json.dumps({
                    "type": "history",
                    "data": get_event_bus().recent(incident_id=incident_id.strip() or None),
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                }, default=str))
    except WebSocketDisconnect:
        logger.debug("ws_client_left")
    finally:
        await manager.disconnect(websocket)
