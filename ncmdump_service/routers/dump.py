"""Dump endpoint: start a batch over the current queue.

Protected by admin API key (X-Admin-Key header). The batch runs in the
background; progress is observed through ``GET /queue`` and the
completion message through ``GET /notifications``. Only one batch can
run at a time (409 while another one is active).
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ncmdump_service.auth.admin import require_admin_key
from ncmdump_service.dialogs import RequestDialogs
from ncmdump_service.queue.controller import QueueController
from ncmdump_service.queue.dispatcher import BatchInProgressError, DispatcherState
from ncmdump_service.schemas.dump import DumpRequest, DumpResponse, DumpStatus
from ncmdump_service.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dump"])


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    """Build a JSON error response matching the project convention."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
            }
        },
    )


@router.post(
    "/dump",
    response_model=DumpResponse,
    status_code=202,
    responses={
        400: {"description": "Queue empty or output directory missing"},
        403: {"description": "Missing or invalid admin API key"},
        409: {"description": "Another batch is in progress"},
    },
    dependencies=[Depends(require_admin_key)],
)
async def start_dump(request: Request, body: DumpRequest) -> DumpResponse | JSONResponse:
    """Dump every queued file into ``output_dir``.

    ``output_dir: null`` falls back to DEFAULT_OUTPUT_DIR; if that is unset
    too, the directory dialog counts as dismissed and the batch is aborted
    without touching the queue.
    """
    controller: QueueController = request.app.state.controller

    if controller.dispatcher_state is not DispatcherState.IDLE:
        return _error_response(409, "BATCH_IN_PROGRESS", "Another batch is in progress.")

    total = len(controller.state.files)
    if total == 0:
        return _error_response(400, "QUEUE_EMPTY", "There are no files to dump.")

    output_dir = body.output_dir or settings.default_output_dir
    if output_dir is not None and not Path(output_dir).is_dir():
        return _error_response(
            400, "INVALID_OUTPUT_DIR", f"Output directory does not exist: {output_dir}"
        )

    dialogs = RequestDialogs(request.app.state.notifications, directory=output_dir)
    try:
        controller.start_dump(dialogs)
    except BatchInProgressError:
        return _error_response(409, "BATCH_IN_PROGRESS", "Another batch is in progress.")

    if output_dir is None:
        logger.info("No output directory given, batch aborted")
        return DumpResponse(status=DumpStatus.ABORTED, total=total)

    return DumpResponse(status=DumpStatus.STARTED, total=total, output_dir=output_dir)
