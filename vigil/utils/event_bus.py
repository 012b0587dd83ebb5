"""EventBus: fan-out of incident change notifications.

The store publishes one notification per successful mutation. Every
notification names its incident, so a listener can follow the whole store or a
single incident, and polling clients can read back what changed on one
incident without holding a socket open.
"""

import asyncio
from collections import Counter, defaultdict, deque
from typing import Any, Callable, Coroutine, Optional

from .logging import get_logger

logger = get_logger("utils.event_bus")

Listener = Callable[[dict], Coroutine[Any, Any, Any]]

LISTENER_TIMEOUT_SECONDS = 5.0


class EventBus:
    """Incident notifications: ``{"event", "incident_id", "event_id", "timestamp"}``.

    ``publish`` never blocks the caller. Delivery happens on a worker task
    started with ``start()``; history is kept whether or not it runs.
    """

    def __init__(self, queue_size: int = 10000, history_size: int = 200):
        self._history_size = history_size
        self._history: deque = deque(maxlen=history_size)
        self._by_incident: dict[str, deque] = {}
        # None keys the listeners that follow every incident
        self._listeners: dict[Optional[str], list[Listener]] = defaultdict(list)
        self._pending: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._worker: Optional[asyncio.Task] = None
        self._counts: Counter = Counter()

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def subscribe(self, listener: Listener, incident_id: Optional[str] = None) -> None:
        """Follow every incident, or only ``incident_id`` when given."""
        listeners = self._listeners[incident_id]
        if listener not in listeners:
            listeners.append(listener)
            logger.info("event_bus_listener_added", incident_id=incident_id or "*")

    def unsubscribe(self, listener: Listener, incident_id: Optional[str] = None) -> None:
        listeners = self._listeners.get(incident_id)
        if not listeners or listener not in listeners:
            return
        listeners.remove(listener)
        if incident_id is not None and not listeners:
            del self._listeners[incident_id]

    def publish(self, notification: dict) -> None:
        """Record a notification and queue it for delivery.

        A full queue skips delivery and counts a drop; the notification still
        lands in history.
        """
        incident_id = notification.get("incident_id")
        self._history.append(notification)
        if incident_id:
            trail = self._by_incident.get(incident_id)
            if trail is None:
                trail = self._by_incident[incident_id] = deque(maxlen=self._history_size)
            trail.append(notification)

        try:
            self._pending.put_nowait(notification)
        except asyncio.QueueFull:
            self._counts["dropped"] += 1
            logger.warning("event_bus_queue_full", event=notification.get("event"), incident_id=incident_id)
            return
        self._counts["published"] += 1

    def recent(self, limit: int = 50, incident_id: Optional[str] = None) -> list[dict]:
        """Latest notifications, oldest first, optionally for one incident."""
        if limit <= 0:
            return []
        trail = self._history if incident_id is None else self._by_incident.get(incident_id, ())
        return list(trail)[-limit:]

    async def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.create_task(self._deliver_forever())
        logger.info("event_bus_started")

    async def stop(self) -> None:
        worker, self._worker = self._worker, None
        if worker is not None:
            worker.cancel()
            await asyncio.gather(worker, return_exceptions=True)
        logger.info(
            "event_bus_stopped",
            published=self._counts["published"],
            delivered=self._counts["delivered"],
        )

    async def _deliver_forever(self) -> None:
        while True:
            notification = await self._pending.get()
            await self._deliver(notification)
            self._counts["delivered"] += 1

    async def _deliver(self, notification: dict) -> None:
        listeners = [
            *self._listeners.get(None, ()),
            *self._listeners.get(notification.get("incident_id"), ()),
        ]
        for listener in listeners:
            try:
                await asyncio.wait_for(listener(notification), timeout=LISTENER_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                logger.warning("event_bus_listener_timeout", event=notification.get("event"))
            except Exception as e:
                logger.error("event_bus_listener_error", event=notification.get("event"), error=str(e))

    def get_stats(self) -> dict:
        return {
            "running": self.running,
            "total_published": self._counts["published"],
            "total_delivered": self._counts["delivered"],
            "total_dropped": self._counts["dropped"],
            "queue_size": self._pending.qsize(),
            "history_size": len(self._history),
            "incidents_tracked": len(self._by_incident),
            "listener_count": sum(len(v) for v in self._listeners.values()),
        }
