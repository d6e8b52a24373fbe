"""Route change broadcast.

Every committed route is published to a ``RouteEventBus``. Subscribers
(a UI integration, a devtool, a test) each get their own queue, so no
core logic depends on how a subscriber propagates the change.

Thread safety:
    - Route is a frozen dataclass (safe to share)
    - RouteEventBus uses a Lock to protect the subscriber set
    - Each subscriber gets its own asyncio.Queue
"""

import asyncio
import threading
from collections.abc import AsyncIterator, Callable
from typing import Any

from wayfinder.routing.route import Route


class RouteEventBus:
    """Broadcast channel for committed routes.

    Usage::

        async for route in router.subscribe():
            render(route)

    Synchronous listeners registered with ``listen()`` are called inline
    on publish, before queued subscribers wake up.
    """

    __slots__ = ("_listeners", "_lock", "_subscribers")

    def __init__(self) -> None:
        self._subscribers: set[asyncio.Queue[Route | None]] = set()
        self._listeners: list[Callable[[Route], Any]] = []
        self._lock = threading.Lock()

    def listen(self, cb: Callable[[Route], Any]) -> Callable[[], None]:
        """Call *cb* with every published route. Returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(cb)

        def unlisten() -> None:
            with self._lock:
                if cb in self._listeners:
                    self._listeners.remove(cb)

        return unlisten

    def publish(self, route: Route) -> None:
        """Deliver *route* to every listener and subscriber."""
        with self._lock:
            listeners = list(self._listeners)
            subscribers = set(self._subscribers)
        for cb in listeners:
            cb(route)
        for queue in subscribers:
            try:
                queue.put_nowait(route)
            except asyncio.QueueFull:
                # Drop routes for slow consumers rather than blocking navigation
                pass

    async def subscribe(self) -> AsyncIterator[Route]:
        """Yield committed routes until ``close()`` is called."""
        queue: asyncio.Queue[Route | None] = asyncio.Queue(maxsize=256)
        with self._lock:
            self._subscribers.add(queue)
        try:
            while True:
                route = await queue.get()
                if route is None:
                    break
                yield route
        finally:
            with self._lock:
                self._subscribers.discard(queue)

    def close(self) -> None:
        """Signal all subscribers to stop."""
        with self._lock:
            for queue in self._subscribers:
                try:
                    queue.put_nowait(None)
                except asyncio.QueueFull:
                    pass
            self._subscribers.clear()
