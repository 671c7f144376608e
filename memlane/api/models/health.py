"""Health check response model."""

from typing import Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Service status for GET /health."""

    status: Literal["healthy", "unhealthy"]
    """healthy when the storage backend answers a ping."""

    storage_backend: str
    """Active backend name."""

    uptime: str
    """Time since startup, e.g. 1h2m3.5s."""

    version: str
    """Service version."""
