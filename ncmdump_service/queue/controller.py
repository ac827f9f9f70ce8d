"""Queue controller: the single owner of queue, hover and progress state.

Wires the ingestion controller and the batch dispatcher around one
``QueueState`` and subscribes to the notification bus for the lifetime of
a session.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from ncmdump_service.queue.dispatcher import BatchDispatcher, BatchReport, DispatcherState
from ncmdump_service.queue.events import EventBus, QueueEvent
from ncmdump_service.queue.ingestion import IngestionController
from ncmdump_service.queue.ports import DialogHost, Dumper, Enumerator, FileFilter
from ncmdump_service.queue.state import QueueState

logger = logging.getLogger(__name__)


class QueueController:
    def __init__(
        self,
        enumerate_path: Enumerator,
        dump: Dumper,
        dialogs: DialogHost,
        file_filter: FileFilter,
        completion_message: str = "All files have been dumped!",
        completion_title: str = "Success",
    ) -> None:
        self.state = QueueState()
        self.ingestion = IngestionController(self.state, enumerate_path, dialogs, file_filter)
        self.dispatcher = BatchDispatcher(
            self.state,
            dump,
            dialogs,
            completion_message=completion_message,
            completion_title=completion_title,
        )
        self._bus: EventBus | None = None

    @property
    def dispatcher_state(self) -> DispatcherState:
        return self.dispatcher.phase

    def handle_event(self, event: QueueEvent) -> None:
        self.ingestion.handle(event)

    @asynccontextmanager
    async def subscribe(self, bus: EventBus) -> AsyncIterator[None]:
        """Handle ``bus`` notifications until the context exits.

        On exit, in-flight enumerations and announcements are awaited
        before the subscription is released.
        """
        if self._bus is not None:
            raise RuntimeError("Queue controller is already subscribed")
        self._bus = bus
        try:
            async with bus.subscribe(self.handle_event):
                logger.info("Queue controller subscribed to notifications")
                try:
                    yield
                finally:
                    await self.drain()
        finally:
            self._bus = None
            logger.info("Queue controller unsubscribed from notifications")

    async def select_files(self, dialogs: DialogHost | None = None) -> int:
        return await self.ingestion.select_files(dialogs)

    def remove(self, path: str) -> bool:
        return self.state.remove(path)

    def clear(self) -> None:
        self.state.clear()

    async def dump(self, dialogs: DialogHost | None = None) -> BatchReport | None:
        return await self.dispatcher.run(dialogs)

    def start_dump(self, dialogs: DialogHost | None = None) -> asyncio.Task[BatchReport | None] | None:
        return self.dispatcher.start(dialogs)

    async def drain(self) -> None:
        """Wait until published events, enumerations and announcements settle."""
        if self._bus is not None:
            await self._bus.join()
        await self.ingestion.drain()
        await self.dispatcher.drain()
