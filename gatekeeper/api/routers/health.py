"""Liveness and in-process metrics. Not gated."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from gatekeeper.api.dependencies import get_metrics
from gatekeeper.config.settings import get_settings
from gatekeeper.observability.metrics import MetricsCollector

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Health check with correlation ID from request state."""
    settings = get_settings()
    return {
        "status": "ok",
        "correlation_id": request.state.correlation_id,
        "environment": settings.environment,
        "version": settings.version,
    }


@router.get("/metrics")
async def metrics(collector: Annotated[MetricsCollector, Depends(get_metrics)]):
    settings = get_settings()
    if not settings.enable_metrics:
        return {"enabled": False}
    return {"enabled": True, **collector.export_metrics()}
