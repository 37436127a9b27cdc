"""Health check schemas."""

from typing import Literal

from app.schemas.v1.common import CamelModel


class HealthResponse(CamelModel):
    status: Literal["ok", "alive"]
    service: str
    version: str


class ReadyResponse(CamelModel):
    status: Literal["ready", "degraded"]
    database: bool
    database_latency_ms: float | None = None
