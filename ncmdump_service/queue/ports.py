"""Contracts for the collaborators the queue core consumes.

The core never decodes, walks directories or talks to a user directly; it
calls these interfaces and reacts to success or failure.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from pathlib import PurePath
from typing import Protocol


class EnumerationError(Exception):
    """Raised when a dropped path cannot be expanded into files."""


class DumpError(Exception):
    """Raised when a single file cannot be dumped."""


@dataclass(frozen=True)
class FileFilter:
    """Picker filter, e.g. ``FileFilter("NCM Files", ("ncm",))``."""

    name: str
    extensions: tuple[str, ...]

    def matches(self, path: str) -> bool:
        suffix = PurePath(path).suffix.lower().lstrip(".")
        return suffix in {ext.lower().lstrip(".") for ext in self.extensions}


Enumerator = Callable[[str], Awaitable[Sequence[str]]]
"""Expands one dropped path into zero or more dump-eligible file paths."""

Dumper = Callable[[str, str], Awaitable[None]]
"""Dumps ``(file_path, output_dir)``; raises :class:`DumpError` on failure."""


class DialogHost(Protocol):
    """User-facing dialogs: pickers and acknowledgements."""

    async def pick_files(self, filters: Sequence[FileFilter]) -> list[str] | None:
        """Return the selected files, or ``None`` when dismissed."""
        ...

    async def pick_directory(self) -> str | None:
        """Return the chosen directory, or ``None`` when dismissed."""
        ...

    async def notify_message(self, text: str, title: str) -> None:
        ...
