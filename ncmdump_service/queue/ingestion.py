"""Turns drop notifications and picker results into queue mutations.

Dropped paths may be directories, so each one is expanded through the
enumerator in its own task; the enumerations of one gesture run
independently and may interleave. Picker results are already files and are
queued as-is.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ncmdump_service.queue.events import DragCancelled, DragHoverStart, Drop, QueueEvent
from ncmdump_service.queue.ports import DialogHost, EnumerationError, Enumerator, FileFilter
from ncmdump_service.queue.state import QueueState
from ncmdump_service.queue.tasks import BackgroundTasks

logger = logging.getLogger(__name__)


class IngestionController:
    def __init__(
        self,
        state: QueueState,
        enumerate_path: Enumerator,
        dialogs: DialogHost,
        file_filter: FileFilter,
    ) -> None:
        self._state = state
        self._enumerate = enumerate_path
        self._dialogs = dialogs
        self._filter = file_filter
        self._tasks = BackgroundTasks()

    @property
    def pending(self) -> int:
        """Number of enumerations still in flight."""
        return len(self._tasks)

    def handle(self, event: QueueEvent) -> None:
        self._state.apply_drag_event(event)
        if isinstance(event, Drop):
            self._on_drop(event.paths)
        elif not isinstance(event, (DragHoverStart, DragCancelled)):
            logger.warning("Ignoring unknown queue event: %r", event)

    def _on_drop(self, paths: Sequence[str]) -> None:
        logger.info("Drop received with %d path(s)", len(paths))
        for path in paths:
            self._tasks.spawn(self._ingest_dropped(path), name=f"enumerate:{path}")

    async def _ingest_dropped(self, path: str) -> None:
        try:
            found = await self._enumerate(path)
        except EnumerationError as e:
            logger.warning("Could not enumerate %s: %s", path, e)
            return
        except Exception:
            logger.exception("Unexpected error enumerating %s", path)
            return

        added = sum(1 for file_path in found if self._state.add(file_path))
        logger.info("Queued %d of %d file(s) from %s", added, len(found), path)

    async def select_files(self, dialogs: DialogHost | None = None) -> int:
        """Open the file picker and queue every selected file.

        Args:
            dialogs: Dialog host for this selection; defaults to the one
                given at construction.

        Returns:
            Number of files newly added to the queue (0 if dismissed).
        """
        selected = await (dialogs or self._dialogs).pick_files([self._filter])
        if selected is None:
            logger.debug("File selection dismissed")
            return 0
        return sum(1 for path in selected if self._state.add(path))

    async def drain(self) -> None:
        await self._tasks.drain()
