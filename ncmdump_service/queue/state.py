"""Mutable state container for the queue core.

Holds the pending ``FileQueue``, the hover flag and the batch progress.
All mutations go through the methods below and happen on the event loop
thread; listeners are called synchronously after each change.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ncmdump_service.queue.drag import reduce_hover
from ncmdump_service.queue.events import QueueEvent
from ncmdump_service.queue.store import FileQueue

logger = logging.getLogger(__name__)

StateListener = Callable[["QueueState"], None]


class QueueState:
    def __init__(self) -> None:
        self.files = FileQueue()
        self.is_hovering = False
        self.progress: float = 0.0
        self._listeners: list[StateListener] = []

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        self._listeners.remove(listener)

    def add(self, path: str) -> bool:
        """Queue ``path``. Returns ``False`` when it was already queued."""
        updated = self.files.add(path)
        if updated is self.files:
            logger.debug("Already queued: %s", path)
            return False
        self.files = updated
        self._notify()
        return True

    def remove(self, path: str) -> bool:
        updated = self.files.remove(path)
        if updated is self.files:
            return False
        self.files = updated
        self._notify()
        return True

    def clear(self) -> None:
        """Empty the queue and reset progress."""
        self.files = self.files.clear()
        self.progress = 0.0
        self._notify()

    def set_progress(self, value: float) -> None:
        self.progress = value
        self._notify()

    def apply_drag_event(self, event: QueueEvent) -> None:
        hovering = reduce_hover(self.is_hovering, event)
        if hovering != self.is_hovering:
            self.is_hovering = hovering
            self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Queue state listener failed")
