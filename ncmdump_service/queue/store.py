"""Deduplicated, insertion-ordered queue of pending file paths.

``FileQueue`` is an immutable value: every operation returns a queue
(the same instance when nothing changes), so a tuple taken from it can
serve directly as a batch snapshot.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class FileQueue:
    """Ordered sequence of unique path strings."""

    items: tuple[str, ...] = ()

    def add(self, path: str) -> FileQueue:
        """Append ``path`` unless an equal string is already queued."""
        if path in self.items:
            return self
        return FileQueue(self.items + (path,))

    def remove(self, path: str) -> FileQueue:
        """Drop ``path`` from the queue; no-op when absent."""
        if path not in self.items:
            return self
        return FileQueue(tuple(p for p in self.items if p != path))

    def clear(self) -> FileQueue:
        if not self.items:
            return self
        return FileQueue()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[str]:
        return iter(self.items)

    def __contains__(self, path: object) -> bool:
        return path in self.items
