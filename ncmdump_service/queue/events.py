"""Inbound drag-and-drop notifications and the in-process bus that carries them.

Notifications are published from the presentation layer (HTTP handlers,
CLI) and delivered to exactly one subscriber, the queue controller, by a
single pump task.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Drop:
    """One drop gesture, possibly carrying several paths."""

    paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class DragHoverStart:
    """A drag entered the drop target."""


@dataclass(frozen=True)
class DragCancelled:
    """A drag left the drop target without dropping."""


QueueEvent = Drop | DragHoverStart | DragCancelled

EventHandler = Callable[[QueueEvent], None]


class EventBus:
    """Single-subscriber FIFO of queue notifications."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[QueueEvent] = asyncio.Queue()
        self._subscribed = False

    @property
    def subscribed(self) -> bool:
        return self._subscribed

    def publish(self, event: QueueEvent) -> None:
        self._queue.put_nowait(event)

    async def join(self) -> None:
        """Wait until every published event has been handled."""
        await self._queue.join()

    @asynccontextmanager
    async def subscribe(self, handler: EventHandler) -> AsyncIterator[None]:
        """Deliver events to ``handler`` for the lifetime of the context.

        Raises:
            RuntimeError: If another subscription is already active.
        """
        if self._subscribed:
            raise RuntimeError("Event bus already has an active subscriber")
        self._subscribed = True
        pump = asyncio.create_task(self._pump(handler), name="event_bus_pump")
        try:
            yield
        finally:
            pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pump
            self._subscribed = False

    async def _pump(self, handler: EventHandler) -> None:
        while True:
            event = await self._queue.get()
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed for %r", event)
            finally:
                self._queue.task_done()
