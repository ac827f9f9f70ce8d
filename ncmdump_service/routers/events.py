"""Drag-and-drop notification endpoints.

Each endpoint publishes one notification on the event bus and returns
immediately; enumeration of dropped paths continues in the background.
"""

from fastapi import APIRouter, Request

from ncmdump_service.queue.events import DragCancelled, DragHoverStart, Drop, QueueEvent
from ncmdump_service.schemas.queue import DropRequest, EventAccepted

router = APIRouter(prefix="/events", tags=["events"])


def _publish(request: Request, event: QueueEvent) -> EventAccepted:
    request.app.state.event_bus.publish(event)
    return EventAccepted()


@router.post("/drop", response_model=EventAccepted, status_code=202)
async def drop(request: Request, body: DropRequest) -> EventAccepted:
    return _publish(request, Drop(paths=tuple(body.paths)))


@router.post("/drag-hover", response_model=EventAccepted, status_code=202)
async def drag_hover(request: Request) -> EventAccepted:
    return _publish(request, DragHoverStart())


@router.post("/drag-cancelled", response_model=EventAccepted, status_code=202)
async def drag_cancelled(request: Request) -> EventAccepted:
    return _publish(request, DragCancelled())
