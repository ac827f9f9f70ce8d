"""Queue endpoints: inspect, pick files into, remove from and clear the queue."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, Request

from ncmdump_service.dialogs import RequestDialogs
from ncmdump_service.queue.controller import QueueController
from ncmdump_service.schemas.queue import (
    NotificationResponse,
    QueueStateResponse,
    SelectFilesRequest,
    SelectFilesResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["queue"])


def _controller(request: Request) -> QueueController:
    return request.app.state.controller


@router.get("/queue", response_model=QueueStateResponse)
async def get_queue(request: Request) -> QueueStateResponse:
    return QueueStateResponse.from_controller(_controller(request))


@router.post("/queue/select", response_model=SelectFilesResponse)
async def select_files(request: Request, body: SelectFilesRequest) -> SelectFilesResponse:
    """Queue the result of a file picker.

    Only paths with the NCM extension are taken, as a native picker
    restricted to that extension would do. ``paths: null`` is a dismissed
    picker and leaves the queue unchanged.
    """
    controller = _controller(request)
    dialogs = RequestDialogs(request.app.state.notifications, files=body.paths)
    added = await controller.select_files(dialogs)
    return SelectFilesResponse(added=added, queue=QueueStateResponse.from_controller(controller))


@router.delete("/queue/files", response_model=QueueStateResponse)
async def remove_file(
    request: Request,
    path: str = Query(..., description="Queued path to remove."),
) -> QueueStateResponse:
    controller = _controller(request)
    if not controller.remove(path):
        logger.debug("Remove ignored, not queued: %s", path)
    return QueueStateResponse.from_controller(controller)


@router.delete("/queue", response_model=QueueStateResponse)
async def clear_queue(request: Request) -> QueueStateResponse:
    controller = _controller(request)
    controller.clear()
    return QueueStateResponse.from_controller(controller)


@router.get("/notifications", response_model=list[NotificationResponse])
async def list_notifications(request: Request) -> list[NotificationResponse]:
    return [
        NotificationResponse(text=n.text, title=n.title, created_at=n.created_at)
        for n in request.app.state.notifications.items()
    ]
