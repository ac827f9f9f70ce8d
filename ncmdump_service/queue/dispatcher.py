"""Sequential batch dispatch of the pending queue.

Once triggered, the dispatcher asks for an output directory, snapshots the
queue and dumps every snapshotted file one at a time. Individual failures
are logged and skipped; when every file has been attempted, progress is
reset, the queue is cleared and a single completion message is announced.

State machine::

    IDLE -> AWAITING_OUTPUT_DIR -> RUNNING -> IDLE
                    |
                    +-> IDLE (directory dialog dismissed)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import StrEnum

from ncmdump_service.queue.ports import DialogHost, DumpError, Dumper
from ncmdump_service.queue.state import QueueState
from ncmdump_service.queue.tasks import BackgroundTasks

logger = logging.getLogger(__name__)


class DispatcherState(StrEnum):
    IDLE = "idle"
    AWAITING_OUTPUT_DIR = "awaiting_output_dir"
    RUNNING = "running"


class BatchInProgressError(Exception):
    """Raised when a batch is triggered while another one is active."""


@dataclass
class DumpOutcome:
    """Result of dumping a single file."""

    file_path: str
    status: str = "pending"  # "success", "error"
    error: str | None = None


@dataclass
class BatchReport:
    """Summary of one batch run."""

    output_dir: str
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    results: list[DumpOutcome] = field(default_factory=list)


class BatchDispatcher:
    def __init__(
        self,
        state: QueueState,
        dump: Dumper,
        dialogs: DialogHost,
        completion_message: str = "All files have been dumped!",
        completion_title: str = "Success",
    ) -> None:
        self._state = state
        self._dump = dump
        self._dialogs = dialogs
        self._completion_message = completion_message
        self._completion_title = completion_title
        self._phase = DispatcherState.IDLE
        self._tasks = BackgroundTasks()

    @property
    def phase(self) -> DispatcherState:
        return self._phase

    async def run(self, dialogs: DialogHost | None = None) -> BatchReport | None:
        """Run one batch over the current queue and wait for it.

        Args:
            dialogs: Dialog host for this batch; defaults to the one given
                at construction.

        Returns:
            The batch report, or ``None`` when nothing was dispatched
            (empty queue or directory dialog dismissed).

        Raises:
            BatchInProgressError: If the dispatcher is not idle.
        """
        if not self._claim():
            return None
        return await self._execute(dialogs or self._dialogs)

    def start(self, dialogs: DialogHost | None = None) -> asyncio.Task[BatchReport | None] | None:
        """Claim the dispatcher and run the batch in a background task.

        The dispatcher leaves IDLE before this returns, so a second
        trigger is rejected even if the task has not started yet.

        Returns:
            The batch task, or ``None`` when the queue is empty.

        Raises:
            BatchInProgressError: If the dispatcher is not idle.
        """
        if not self._claim():
            return None
        return self._tasks.spawn(self._execute(dialogs or self._dialogs), name="batch")

    def _claim(self) -> bool:
        if self._phase is not DispatcherState.IDLE:
            raise BatchInProgressError(f"Dispatcher is {self._phase.value}")
        if not self._state.files:
            logger.info("Queue is empty, nothing to dump")
            return False
        self._phase = DispatcherState.AWAITING_OUTPUT_DIR
        return True

    async def _execute(self, dialogs: DialogHost) -> BatchReport | None:
        try:
            output_dir = await dialogs.pick_directory()
            if output_dir is None:
                logger.info("Output directory selection dismissed, batch aborted")
                return None

            snapshot = tuple(self._state.files)
            if not snapshot:
                logger.info("Queue emptied before the batch started, nothing to dump")
                return None

            self._phase = DispatcherState.RUNNING
            report = await self._run_batch(snapshot, output_dir)
        finally:
            self._phase = DispatcherState.IDLE

        self._tasks.spawn(self._announce(dialogs), name="batch_completion")
        return report

    async def _run_batch(self, snapshot: tuple[str, ...], output_dir: str) -> BatchReport:
        total = len(snapshot)
        report = BatchReport(output_dir=output_dir, total=total)
        logger.info("Dumping %d file(s) to %s", total, output_dir)

        for i, file_path in enumerate(snapshot):
            logger.info("[%d/%d] Dumping: %s", i + 1, total, file_path)
            outcome = DumpOutcome(file_path=file_path)
            try:
                await self._dump(file_path, output_dir)
                outcome.status = "success"
                report.succeeded += 1
            except DumpError as e:
                outcome.status = "error"
                outcome.error = str(e)
                report.failed += 1
                logger.error("Dump failed for %s: %s", file_path, e)
            except Exception as e:
                outcome.status = "error"
                outcome.error = f"Unexpected error: {e}"
                report.failed += 1
                logger.exception("Unexpected error dumping %s", file_path)
            report.results.append(outcome)

            if total > 1:
                self._state.set_progress((i + 1) * 100 / total)

        self._state.set_progress(0.0)
        self._state.clear()
        logger.info(
            "Batch complete: %d succeeded, %d failed (of %d total)",
            report.succeeded,
            report.failed,
            report.total,
        )
        return report

    async def _announce(self, dialogs: DialogHost) -> None:
        try:
            await dialogs.notify_message(self._completion_message, self._completion_title)
        except Exception:
            logger.exception("Failed to announce batch completion")

    async def drain(self) -> None:
        await self._tasks.drain()
