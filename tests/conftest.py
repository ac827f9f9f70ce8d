"""Shared fixtures: fake collaborators for the queue core."""

from __future__ import annotations

from collections.abc import Sequence

import pytest

from ncmdump_service.queue.ports import DumpError, EnumerationError, FileFilter

NCM_FILTER = FileFilter("NCM Files", ("ncm",))


class FakeDialogs:
    """Dialog host with canned answers that records every call."""

    def __init__(
        self,
        files: Sequence[str] | None = None,
        directory: str | None = "/out",
    ) -> None:
        self.files = list(files) if files is not None else None
        self.directory = directory
        self.file_filters: list[Sequence[FileFilter]] = []
        self.directory_requests = 0
        self.messages: list[tuple[str, str]] = []

    async def pick_files(self, filters: Sequence[FileFilter]) -> list[str] | None:
        self.file_filters.append(filters)
        return None if self.files is None else list(self.files)

    async def pick_directory(self) -> str | None:
        self.directory_requests += 1
        return self.directory

    async def notify_message(self, text: str, title: str) -> None:
        self.messages.append((text, title))


class RecordingDumper:
    """Dump collaborator recording calls; paths in ``fail`` raise DumpError."""

    def __init__(self, fail: Sequence[str] = (), on_call=None) -> None:
        self.calls: list[tuple[str, str]] = []
        self.fail = set(fail)
        self.on_call = on_call

    async def __call__(self, file_path: str, output_dir: str) -> None:
        self.calls.append((file_path, output_dir))
        if self.on_call is not None:
            self.on_call(file_path)
        if file_path in self.fail:
            raise DumpError(f"cannot dump {file_path}")


def make_enumerator(mapping: dict[str, list[str]]):
    """Enumerator returning ``mapping[path]``; unknown paths raise EnumerationError."""
    async def _enumerate(path: str) -> list[str]:
        if path not in mapping:
            raise EnumerationError(f"Path does not exist: {path}")
        return list(mapping[path])

    return _enumerate


@pytest.fixture
def dialogs() -> FakeDialogs:
    return FakeDialogs()


@pytest.fixture
def dumper() -> RecordingDumper:
    return RecordingDumper()
