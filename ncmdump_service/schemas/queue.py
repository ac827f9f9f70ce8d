from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ncmdump_service.queue.controller import QueueController
from ncmdump_service.queue.dispatcher import DispatcherState


class QueueStateResponse(BaseModel):
    """Snapshot of the queue core as seen by the presentation layer."""

    files: list[str]
    is_hovering: bool
    progress: float = Field(ge=0, le=100)
    dispatcher_state: DispatcherState

    @classmethod
    def from_controller(cls, controller: QueueController) -> QueueStateResponse:
        return cls(
            files=list(controller.state.files),
            is_hovering=controller.state.is_hovering,
            progress=controller.state.progress,
            dispatcher_state=controller.dispatcher_state,
        )


class SelectFilesRequest(BaseModel):
    """Result of a file picker; ``null`` means the picker was dismissed."""

    paths: list[str] | None = None


class SelectFilesResponse(BaseModel):
    added: int
    queue: QueueStateResponse


class DropRequest(BaseModel):
    """A drop gesture carrying zero or more paths."""

    paths: list[str] = Field(default_factory=list)


class EventAccepted(BaseModel):
    accepted: bool = True


class NotificationResponse(BaseModel):
    text: str
    title: str
    created_at: datetime
