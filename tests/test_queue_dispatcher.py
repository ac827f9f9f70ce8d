"""Tests for the sequential batch dispatcher.

The dump collaborator and dialogs are fakes; progress is observed through
QueueState listeners and from inside the dump calls.
"""

import asyncio

import pytest
from conftest import FakeDialogs, RecordingDumper

from ncmdump_service.queue.dispatcher import (
    BatchDispatcher,
    BatchInProgressError,
    DispatcherState,
)
from ncmdump_service.queue.state import QueueState


def _state_with(*paths: str) -> QueueState:
    state = QueueState()
    for path in paths:
        state.add(path)
    return state


def _progress_log(state: QueueState) -> list[float]:
    log: list[float] = []
    state.add_listener(lambda s: log.append(s.progress))
    return log


# ---------------------------------------------------------------------------
# Happy path and failure tolerance
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_partial_failure_batch_completes():
    """queue=[a, b, c], dump(b) fails -> queue empty, progress 0, one message."""
    state = _state_with("a", "b", "c")
    dumper = RecordingDumper(fail=["b"])
    dialogs = FakeDialogs(directory="/out")
    dispatcher = BatchDispatcher(state, dumper, dialogs)

    report = await dispatcher.run()
    await dispatcher.drain()

    assert dumper.calls == [("a", "/out"), ("b", "/out"), ("c", "/out")]
    assert len(state.files) == 0
    assert state.progress == 0
    assert dialogs.messages == [("All files have been dumped!", "Success")]
    assert report is not None
    assert report.total == 3
    assert report.succeeded == 2
    assert report.failed == 1
    assert [r.status for r in report.results] == ["success", "error", "success"]
    assert "cannot dump b" in (report.results[1].error or "")


@pytest.mark.asyncio
async def test_all_failures_still_clear_queue():
    state = _state_with("a", "b")
    dispatcher = BatchDispatcher(state, RecordingDumper(fail=["a", "b"]), FakeDialogs())

    report = await dispatcher.run()

    assert report is not None
    assert report.failed == 2
    assert len(state.files) == 0
    assert state.progress == 0


@pytest.mark.asyncio
async def test_unexpected_exception_is_treated_as_failure():
    async def dump(file_path: str, output_dir: str) -> None:
        if file_path == "a":
            raise ValueError("corrupt")

    state = _state_with("a", "b")
    dispatcher = BatchDispatcher(state, dump, FakeDialogs())

    report = await dispatcher.run()

    assert report is not None
    assert [r.status for r in report.results] == ["error", "success"]
    assert report.results[0].error == "Unexpected error: corrupt"


@pytest.mark.asyncio
async def test_custom_completion_message():
    dialogs = FakeDialogs()
    dispatcher = BatchDispatcher(
        _state_with("a"),
        RecordingDumper(),
        dialogs,
        completion_message="Done",
        completion_title="ncmdump",
    )

    await dispatcher.run()
    await dispatcher.drain()

    assert dialogs.messages == [("Done", "ncmdump")]


@pytest.mark.asyncio
async def test_announcement_failure_is_contained():
    class BrokenNotify(FakeDialogs):
        async def notify_message(self, text: str, title: str) -> None:
            raise RuntimeError("window closed")

    state = _state_with("a")
    dispatcher = BatchDispatcher(state, RecordingDumper(), BrokenNotify())

    report = await dispatcher.run()
    await dispatcher.drain()

    assert report is not None
    assert len(state.files) == 0


# ---------------------------------------------------------------------------
# Progress accounting
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_progress_after_each_item_for_multi_item_batch():
    state = _state_with("a", "b", "c", "d")
    log = _progress_log(state)
    dispatcher = BatchDispatcher(state, RecordingDumper(fail=["c"]), FakeDialogs())

    await dispatcher.run()

    # 4 per-item updates, then the reset (the clear reports 0 again).
    assert log[:4] == [25.0, 50.0, 75.0, 100.0]
    assert all(p == 0 for p in log[4:])
    assert state.progress == 0


@pytest.mark.asyncio
async def test_progress_is_updated_after_each_attempt_settles():
    state = _state_with("a", "b", "c")
    seen_during_dump: list[float] = []
    dumper = RecordingDumper(on_call=lambda _: seen_during_dump.append(state.progress))
    dispatcher = BatchDispatcher(state, dumper, FakeDialogs())

    await dispatcher.run()

    assert seen_during_dump == [0.0, pytest.approx(100 / 3), pytest.approx(200 / 3)]


@pytest.mark.asyncio
async def test_progress_strictly_increasing():
    paths = [f"f{i}" for i in range(7)]
    state = _state_with(*paths)
    log = _progress_log(state)
    dispatcher = BatchDispatcher(state, RecordingDumper(), FakeDialogs())

    await dispatcher.run()

    per_item = log[: len(paths)]
    assert per_item == [(i + 1) * 100 / 7 for i in range(7)]
    assert all(a < b for a, b in zip(per_item, per_item[1:], strict=False))
    assert per_item[-1] == 100


@pytest.mark.asyncio
async def test_single_item_batch_never_moves_progress():
    state = _state_with("only")
    log = _progress_log(state)
    seen_during_dump: list[float] = []
    dumper = RecordingDumper(on_call=lambda _: seen_during_dump.append(state.progress))
    dispatcher = BatchDispatcher(state, dumper, FakeDialogs())

    await dispatcher.run()

    assert seen_during_dump == [0.0]
    assert all(p == 0 for p in log)


# ---------------------------------------------------------------------------
# Snapshot semantics and ordering
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_dispatch_follows_queue_order():
    state = _state_with("c", "a", "b")
    dumper = RecordingDumper()
    dispatcher = BatchDispatcher(state, dumper, FakeDialogs())

    await dispatcher.run()

    assert [c[0] for c in dumper.calls] == ["c", "a", "b"]


@pytest.mark.asyncio
async def test_removal_mid_batch_does_not_change_snapshot():
    state = _state_with("a", "b", "c", "d")
    log = _progress_log(state)

    def remove_later_item(file_path: str) -> None:
        if file_path == "a":
            state.remove("c")

    dumper = RecordingDumper(on_call=remove_later_item)
    dispatcher = BatchDispatcher(state, dumper, FakeDialogs())

    report = await dispatcher.run()

    assert [c[0] for c in dumper.calls] == ["a", "b", "c", "d"]
    assert report is not None
    assert report.total == 4
    assert [p for p in log if p > 0] == [25.0, 50.0, 75.0, 100.0]


@pytest.mark.asyncio
async def test_items_added_mid_batch_are_cleared_with_the_batch():
    state = _state_with("a", "b")

    def add_new(file_path: str) -> None:
        if file_path == "a":
            state.add("late")

    dumper = RecordingDumper(on_call=add_new)
    dispatcher = BatchDispatcher(state, dumper, FakeDialogs())

    await dispatcher.run()

    assert [c[0] for c in dumper.calls] == ["a", "b"]
    assert len(state.files) == 0


@pytest.mark.asyncio
async def test_dumps_never_overlap():
    active = 0
    max_active = 0

    async def dump(file_path: str, output_dir: str) -> None:
        nonlocal active, max_active
        active += 1
        max_active = max(max_active, active)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        active -= 1

    dispatcher = BatchDispatcher(_state_with("a", "b", "c"), dump, FakeDialogs())
    await dispatcher.run()

    assert max_active == 1


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_dismissed_directory_aborts_without_mutation():
    state = _state_with("a", "b")
    dumper = RecordingDumper()
    dialogs = FakeDialogs(directory=None)
    dispatcher = BatchDispatcher(state, dumper, dialogs)

    report = await dispatcher.run()
    await dispatcher.drain()

    assert report is None
    assert dumper.calls == []
    assert list(state.files) == ["a", "b"]
    assert dialogs.messages == []
    assert dispatcher.phase is DispatcherState.IDLE


@pytest.mark.asyncio
async def test_empty_queue_does_not_open_dialog():
    dialogs = FakeDialogs()
    dispatcher = BatchDispatcher(QueueState(), RecordingDumper(), dialogs)

    assert await dispatcher.run() is None
    assert dialogs.directory_requests == 0
    assert dispatcher.phase is DispatcherState.IDLE


@pytest.mark.asyncio
async def test_queue_emptied_while_choosing_directory():
    state = _state_with("a")

    class ClearingDialogs(FakeDialogs):
        async def pick_directory(self) -> str | None:
            state.clear()
            return "/out"

    dumper = RecordingDumper()
    dialogs = ClearingDialogs()
    dispatcher = BatchDispatcher(state, dumper, dialogs)

    assert await dispatcher.run() is None
    await dispatcher.drain()
    assert dumper.calls == []
    assert dialogs.messages == []


@pytest.mark.asyncio
async def test_phases_during_batch():
    state = _state_with("a", "b")
    phases: list[DispatcherState] = []
    directory_open = asyncio.Event()
    release_directory = asyncio.Event()

    class SlowDialogs(FakeDialogs):
        async def pick_directory(self) -> str | None:
            directory_open.set()
            await release_directory.wait()
            return "/out"

    dispatcher: BatchDispatcher

    async def dump(file_path: str, output_dir: str) -> None:
        phases.append(dispatcher.phase)

    dispatcher = BatchDispatcher(state, dump, SlowDialogs())
    task = dispatcher.start()
    assert task is not None
    assert dispatcher.phase is DispatcherState.AWAITING_OUTPUT_DIR

    await directory_open.wait()
    assert dispatcher.phase is DispatcherState.AWAITING_OUTPUT_DIR
    release_directory.set()
    await task

    assert phases == [DispatcherState.RUNNING, DispatcherState.RUNNING]
    assert dispatcher.phase is DispatcherState.IDLE


@pytest.mark.asyncio
async def test_retrigger_while_active_is_rejected():
    state = _state_with("a")
    release = asyncio.Event()

    async def dump(file_path: str, output_dir: str) -> None:
        await release.wait()

    dispatcher = BatchDispatcher(state, dump, FakeDialogs())
    task = dispatcher.start()
    assert task is not None

    with pytest.raises(BatchInProgressError):
        dispatcher.start()
    with pytest.raises(BatchInProgressError):
        await dispatcher.run()

    release.set()
    await task
    assert dispatcher.phase is DispatcherState.IDLE


@pytest.mark.asyncio
async def test_start_on_empty_queue_returns_none():
    dispatcher = BatchDispatcher(QueueState(), RecordingDumper(), FakeDialogs())
    assert dispatcher.start() is None
    assert dispatcher.phase is DispatcherState.IDLE


@pytest.mark.asyncio
async def test_dialog_failure_returns_to_idle():
    class FailingDialogs(FakeDialogs):
        async def pick_directory(self) -> str | None:
            raise RuntimeError("no display")

    state = _state_with("a")
    dispatcher = BatchDispatcher(state, RecordingDumper(), FailingDialogs())

    with pytest.raises(RuntimeError):
        await dispatcher.run()

    assert dispatcher.phase is DispatcherState.IDLE
    assert list(state.files) == ["a"]


@pytest.mark.asyncio
async def test_override_dialogs_used_for_directory_and_message():
    default = FakeDialogs(directory="/default")
    override = FakeDialogs(directory="/override")
    dumper = RecordingDumper()
    dispatcher = BatchDispatcher(_state_with("a"), dumper, default)

    await dispatcher.run(override)
    await dispatcher.drain()

    assert dumper.calls == [("a", "/override")]
    assert default.directory_requests == 0
    assert override.messages and not default.messages
