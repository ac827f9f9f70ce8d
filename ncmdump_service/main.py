import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ncmdump_service.auth.admin import AdminAuthError
from ncmdump_service.dialogs import NotificationLog, RequestDialogs
from ncmdump_service.factory import build_controller
from ncmdump_service.queue.events import EventBus
from ncmdump_service.routers import dump as dump_router
from ncmdump_service.routers import events, health, queue
from ncmdump_service.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    notifications = NotificationLog(maxlen=settings.notification_history)
    # Requests carry their own answers; the default host dismisses every dialog.
    controller = build_controller(RequestDialogs(notifications))
    bus = EventBus()

    app.state.notifications = notifications
    app.state.controller = controller
    app.state.event_bus = bus

    async with controller.subscribe(bus):
        logger.info("%s %s ready", settings.app_name, settings.app_version)
        yield

    # Shutdown
    logger.info("Queue controller released, %d file(s) left queued", len(controller.state.files))


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(health.router)
    application.include_router(queue.router, prefix="/api/v1")
    application.include_router(events.router, prefix="/api/v1")
    application.include_router(dump_router.router, prefix="/api/v1")

    @application.exception_handler(AdminAuthError)
    async def admin_auth_error_handler(request: Request, exc: AdminAuthError) -> JSONResponse:
        return JSONResponse(
            status_code=403,
            content={
                "error": {
                    "code": exc.code,
                    "message": exc.message,
                }
            },
        )

    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred.",
                    "details": None,
                }
            },
        )

    return application


app = create_app()


def serve() -> None:
    """Run the HTTP service with uvicorn on SERVICE_HOST:SERVICE_PORT."""
    uvicorn.run(
        "ncmdump_service.main:app",
        host=settings.service_host,
        port=settings.service_port,
        log_level=settings.log_level.lower(),
    )
