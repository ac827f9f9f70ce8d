"""Dialog hosts for the HTTP surface.

An HTTP client has already made its choice by the time a request arrives,
so ``RequestDialogs`` answers the pickers with the values carried by the
request and records acknowledgements in a shared ``NotificationLog``.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from ncmdump_service.queue.ports import FileFilter

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    text: str
    title: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class NotificationLog:
    """Bounded history of user-facing acknowledgements."""

    def __init__(self, maxlen: int = 50) -> None:
        self._items: deque[Notification] = deque(maxlen=maxlen)

    def append(self, text: str, title: str) -> Notification:
        notification = Notification(text=text, title=title)
        self._items.append(notification)
        return notification

    def items(self) -> list[Notification]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()


class RequestDialogs:
    """Dialog host answering with values supplied by the caller.

    ``None`` for either answer behaves like a dismissed dialog.
    """

    def __init__(
        self,
        notifications: NotificationLog,
        files: Sequence[str] | None = None,
        directory: str | None = None,
    ) -> None:
        self._notifications = notifications
        self._files = list(files) if files is not None else None
        self._directory = directory

    async def pick_files(self, filters: Sequence[FileFilter]) -> list[str] | None:
        if self._files is None:
            return None
        if not filters:
            return list(self._files)
        selected = [p for p in self._files if any(f.matches(p) for f in filters)]
        rejected = len(self._files) - len(selected)
        if rejected:
            logger.info("Ignored %d selected path(s) not matching the picker filter", rejected)
        return selected

    async def pick_directory(self) -> str | None:
        return self._directory

    async def notify_message(self, text: str, title: str) -> None:
        self._notifications.append(text, title)
        logger.info("%s: %s", title, text)
