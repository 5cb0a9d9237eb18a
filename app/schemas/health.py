"""Schema for the health endpoint."""

from typing import Literal

from app.schemas.base import CamelModel


class HealthResponse(CamelModel):
    """Liveness plus the token lifetimes clients should expect."""

    status: Literal["ok", "degraded"]
    environment: str
    database: Literal["connected", "disconnected"]
    access_token_minutes: int
    refresh_token_days: int
