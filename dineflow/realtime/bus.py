"""
In-process publish/subscribe fan-out for realtime clients.

Delivery is best-effort and at-most-once: an event reaches the connections
that exist at publish time and is never buffered or replayed. Every handler
receives its own deep copy of the payload.
"""
import asyncio
import contextlib
import copy
import inspect
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Tuple

from prometheus_client import Counter, Gauge

_logger = logging.getLogger(__name__)

# Server-emitted event names
FOOD_ADDED = "newFoodAdded"
FOOD_UPDATED = "foodUpdated"
FOOD_DELETED = "foodDeleted"
ORDER_PLACED = "newOrderPlaced"
ORDER_STATUS_CHANGED = "orderStatusChanged"
ORDER_DELETED = "orderDeleted"

EVENT_NAMES = (FOOD_ADDED, FOOD_UPDATED, FOOD_DELETED, ORDER_PLACED, ORDER_STATUS_CHANGED, ORDER_DELETED)

# Subscribe to every event name
ALL = "*"

EVENTS_PUBLISHED = Counter("bus_events_published_total", "Events published on the notification bus", ["event"])
EVENTS_DROPPED = Counter("bus_events_dropped_total", "Events dropped because a connection queue was full")
CONNECTIONS = Gauge("bus_connections", "Currently connected realtime clients")

Handler = Callable[[str, Any], Optional[Awaitable[None]]]


class Connection:
    """One client's set of listeners. Torn down as a whole on disconnect."""

    def __init__(self, bus: "NotificationBus", sid: str):
        self.sid = sid
        self.closed = False
        self._bus = bus
        self._handlers: Dict[str, List[Handler]] = {}

    def subscribe(self, event: str, handler: Handler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def unsubscribe(self, event: str, handler: Optional[Handler] = None) -> None:
        if handler is None:
            self._handlers.pop(event, None)
            return
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._handlers.pop(event, None)

    def listen(self, maxsize: int = 1000) -> "asyncio.Queue[Tuple[str, Any]]":
        """Queue every event for a transport loop to drain."""
        queue: "asyncio.Queue[Tuple[str, Any]]" = asyncio.Queue(maxsize)

        def enqueue(event: str, payload: Any) -> None:
            try:
                queue.put_nowait((event, payload))
            except asyncio.QueueFull:
                EVENTS_DROPPED.inc()
                _logger.warning("Dropping event for slow client | sid=%s event=%s", self.sid, event)

        self.subscribe(ALL, enqueue)
        return queue

    def close(self) -> None:
        self._bus.disconnect(self)

    async def deliver(self, event: str, payload: Any) -> None:
        handlers = list(self._handlers.get(event, ())) + list(self._handlers.get(ALL, ()))
        for handler in handlers:
            try:
                result = handler(event, copy.deepcopy(payload))
                if inspect.isawaitable(result):
                    await result
            except Exception:
                _logger.exception("Subscriber failed | sid=%s event=%s", self.sid, event)


class NotificationBus:
    def __init__(self, relay=None):
        self._connections: Dict[str, Connection] = {}
        self._relay = relay
        self._relay_task: Optional[asyncio.Task] = None
        self._stop: Optional[asyncio.Event] = None

    @property
    def connections(self) -> List[Connection]:
        return list(self._connections.values())

    def connect(self) -> Connection:
        conn = Connection(self, uuid.uuid4().hex)
        self._connections[conn.sid] = conn
        CONNECTIONS.inc()
        _logger.info("Client connected | sid=%s", conn.sid)
        return conn

    def disconnect(self, conn: Connection) -> None:
        if self._connections.pop(conn.sid, None) is None:
            return
        conn.closed = True
        conn._handlers.clear()
        CONNECTIONS.dec()
        _logger.info("Client disconnected | sid=%s", conn.sid)

    @contextlib.contextmanager
    def connection(self) -> Iterator[Connection]:
        conn = self.connect()
        try:
            yield conn
        finally:
            self.disconnect(conn)

    async def publish(self, event: str, payload: Any) -> None:
        EVENTS_PUBLISHED.labels(event=event).inc()
        if self._relay is not None:
            try:
                await self._relay.publish(event, payload)
                return
            except Exception as e:
                _logger.warning("Relay publish failed, delivering locally | event=%s err=%s", event, e)
        await self.deliver(event, payload)

    async def deliver(self, event: str, payload: Any) -> None:
        """Fan out to the connections present right now."""
        for conn in self.connections:
            await conn.deliver(event, payload)

    async def start(self) -> None:
        if self._relay is None or self._relay_task is not None:
            return
        self._stop = asyncio.Event()
        self._relay_task = asyncio.create_task(self._relay.run(self.deliver, self._stop))
        _logger.info("Notification relay started | channel=%s", self._relay.channel)

    async def stop(self) -> None:
        if self._stop is not None:
            self._stop.set()
        task, self._relay_task = self._relay_task, None
        if task is not None:
            try:
                await asyncio.wait_for(task, timeout=2.0)
            except (asyncio.TimeoutError, asyncio.CancelledError):
                task.cancel()
        for conn in self.connections:
            self.disconnect(conn)
        if self._relay is not None:
            await self._relay.close()
