from fastapi import APIRouter, Request

from ncmdump_service.schemas.health import HealthResponse
from ncmdump_service.settings import settings

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    bus = getattr(request.app.state, "event_bus", None)
    return HealthResponse(
        status="ok",
        name=settings.app_name,
        version=settings.app_version,
        subscribed=bool(bus is not None and bus.subscribed),
    )
