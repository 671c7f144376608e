"""Health check and metrics endpoints."""

import time

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from memlane import __version__
from memlane.api.dependencies import SettingsDep, StorageDep
from memlane.api.deadline import within_deadline
from memlane.api.models.health import HealthResponse
from memlane.observability.logging import get_logger
from memlane.storage.errors import StoreError

logger = get_logger(__name__)

router = APIRouter()


def format_uptime(seconds: float) -> str:
    """Format a duration as 1h2m3.5s, dropping leading zero units."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    out = ""
    if hours:
        out += f"{int(hours)}h"
    if hours or minutes:
        out += f"{int(minutes)}m"
    return out + f"{secs:.3f}".rstrip("0").rstrip(".") + "s"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request,
    storage: StorageDep,
    settings: SettingsDep,
) -> HealthResponse:
    """Report service status and ping the storage backend.

    Always answers 200; an unreachable backend is reported as unhealthy.
    """
    status = "healthy"
    try:
        await within_deadline(storage.ping(), settings.api.request_timeout_seconds)
    except (StoreError, TimeoutError) as e:
        logger.warning("health_check_storage_unreachable", error=str(e))
        status = "unhealthy"

    return HealthResponse(
        status=status,
        storage_backend=storage.backend_name(),
        uptime=format_uptime(time.monotonic() - request.app.state.started_at),
        version=__version__,
    )


async def get_metrics() -> Response:
    """Prometheus metrics in text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
