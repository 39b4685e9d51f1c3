"""
Health checks for the flow studio service.

The service stays usable without the text-generation collaborator (the
heuristic fallback covers it), so a missing or failing collaborator
reports ``degraded`` rather than ``unhealthy``.
"""
from fastapi import APIRouter, status
from pydantic import BaseModel
from typing import Dict, Any, Optional
from datetime import datetime
import time

from flowstudio.config import settings
from flowstudio.services.generation import (
    architecture_pipeline,
    questions_pipeline,
    thinking_pipeline,
    wireframe_pipeline,
)
from flowstudio.services.layout import layout_engine
from flowstudio.utils.datetime_utils import to_iso_string, utc_now
from flowstudio.utils.logging import get_logger, log_context

router = APIRouter()
logger = get_logger(__name__)

# Track service start time
SERVICE_START_TIME = time.time()


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class HealthResponse(BaseModel):
    """Simple health check response model"""
    status: str
    service: str
    version: str
    timestamp: datetime

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "healthy",
                "service": "Flow Studio Service",
                "version": "1.0.0",
                "timestamp": "2026-01-15T12:00:00Z"
            }
        }
    }


class LivenessResponse(BaseModel):
    """Liveness probe response"""
    status: str
    timestamp: str


class DependencyStatus(BaseModel):
    """Status of a single dependency"""
    name: str
    status: str  # "healthy", "degraded", "unhealthy"
    response_time_ms: Optional[float] = None
    message: Optional[str] = None
    last_checked: str


class FullHealthResponse(BaseModel):
    """Complete health status"""
    status: str  # "healthy", "degraded"
    version: str
    environment: str
    uptime_seconds: float
    dependencies: Dict[str, DependencyStatus]
    metrics: Dict[str, Any]
    timestamp: str


# ============================================================================
# DEPENDENCY CHECK FUNCTIONS
# ============================================================================

async def check_text_generation() -> DependencyStatus:
    """Check the text-generation collaborator used by the architecture pipeline"""
    name = f"Text generation ({settings.llm_provider})"
    client = architecture_pipeline.client

    if client is None:
        return DependencyStatus(
            name=name,
            status="degraded",
            message="Not configured, heuristic fallback only",
            last_checked=to_iso_string()
        )

    start = time.time()
    healthy = await client.health_check()
    response_time = (time.time() - start) * 1000

    return DependencyStatus(
        name=name,
        status="healthy" if healthy else "degraded",
        response_time_ms=response_time,
        message=f"Model {settings.llm_model} reachable" if healthy else "Unreachable, heuristic fallback in use",
        last_checked=to_iso_string()
    )


def get_service_metrics() -> Dict[str, Any]:
    metrics = {
        "architecture": architecture_pipeline.get_statistics(),
        "thinking": thinking_pipeline.get_statistics(),
        "wireframe": wireframe_pipeline.get_statistics(),
        "questions": questions_pipeline.get_statistics(),
        "layout": layout_engine.get_statistics(),
    }
    if architecture_pipeline.client is not None:
        metrics["text_generation"] = architecture_pipeline.client.get_stats()
    return metrics


# ============================================================================
# BASIC HEALTH CHECK
# ============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Service health check",
    description="Returns the current health status of the flow studio service"
)
async def health_check():
    """
    Health check endpoint.

    Used by monitoring systems and load balancers.
    """
    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        version=settings.app_version,
        timestamp=utc_now()
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Liveness probe"
)
async def liveness_check() -> LivenessResponse:
    # No logging in liveness probe
    return LivenessResponse(status="alive", timestamp=to_iso_string())


# ============================================================================
# FULL HEALTH CHECK (Observability)
# ============================================================================

@router.get(
    "/health/full",
    response_model=FullHealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Full health status",
    description="Dependency states, uptime and generation statistics."
)
async def full_health_check() -> FullHealthResponse:
    with log_context(operation="health_full"):
        logger.info("health.full.check_started")
        start_time = time.time()

        dependencies = {"text_generation": await check_text_generation()}

        degraded = any(dep.status != "healthy" for dep in dependencies.values())
        overall_status = "degraded" if degraded else "healthy"
        uptime_seconds = time.time() - SERVICE_START_TIME

        logger.info(
            "health.full.completed",
            extra={
                "overall_status": overall_status,
                "check_duration_ms": (time.time() - start_time) * 1000,
                "uptime_seconds": uptime_seconds,
                "dependencies": {k: v.status for k, v in dependencies.items()}
            }
        )

        return FullHealthResponse(
            status=overall_status,
            version=settings.app_version,
            environment=settings.environment,
            uptime_seconds=uptime_seconds,
            dependencies=dependencies,
            metrics=get_service_metrics(),
            timestamp=to_iso_string()
        )
