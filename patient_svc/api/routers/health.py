"""
Health, readiness, and metrics endpoints for operational visibility.

- /health: Liveness probe (is the app running?)
- /ready: Readiness probe (record store and object store reachable?)
- /metrics: Prometheus-compatible metrics

These endpoints take no request data and do not touch patient records.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from patient_svc.core.dependencies import get_blob_store, get_patient_repository
from patient_svc.core.middleware import get_metrics_collector
from patient_svc.repositories import PatientRepository
from patient_svc.storage.blob_store import BlobStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health & Observability"])

VERSION = "1.0.0"


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class HealthResponse(BaseModel):
    """Response model for /health endpoint."""
    status: str
    version: str
    timestamp: str


class DependencyStatus(BaseModel):
    """Status of a single dependency."""
    name: str
    status: str  # "ok", "degraded", "unavailable"
    latency_ms: float | None = None
    message: str | None = None


class ReadyResponse(BaseModel):
    """Response model for /ready endpoint."""
    status: str  # "ready", "degraded", "not_ready"
    dependencies: List[DependencyStatus]
    timestamp: str


class MetricsResponse(BaseModel):
    """Response model for JSON metrics endpoint."""
    http_requests_total: int
    http_requests_2xx_total: int
    http_requests_4xx_total: int
    http_requests_5xx_total: int
    http_request_duration_ms_p50: float
    http_request_duration_ms_p95: float
    http_request_duration_ms_p99: float


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# HEALTH ENDPOINT (LIVENESS)
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Returns immediately without checking dependencies."
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="healthy", version=VERSION, timestamp=_utc_timestamp())


# =============================================================================
# READINESS ENDPOINT
# =============================================================================

def _check(name: str, probe: Callable[[], None], failure_status: str) -> DependencyStatus:
    """Run a probe and time it; any exception marks the dependency as down."""
    start = time.perf_counter()
    try:
        probe()
    except Exception as e:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.warning(f"{name} readiness check failed", extra={"error": type(e).__name__})
        return DependencyStatus(
            name=name,
            status=failure_status,
            latency_ms=round(latency_ms, 2),
            message=f"Check failed: {type(e).__name__}"
        )
    latency_ms = (time.perf_counter() - start) * 1000
    return DependencyStatus(name=name, status="ok", latency_ms=round(latency_ms, 2))


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness probe",
    description="Checks the record store (critical) and the object store (degraded if down). "
                "Returns 503 if the record store is unavailable."
)
def readiness_check(
    response: Response,
    patient_repository: PatientRepository = Depends(get_patient_repository),
    blob_store: BlobStore = Depends(get_blob_store),
) -> ReadyResponse:
    dependencies = [
        _check("record_store", patient_repository.ping, "unavailable"),
        _check("blob_store", blob_store.ping, "degraded"),
    ]

    if any(d.status == "unavailable" for d in dependencies):
        status = "not_ready"
        response.status_code = 503
    elif any(d.status == "degraded" for d in dependencies):
        status = "degraded"
    else:
        status = "ready"

    return ReadyResponse(status=status, dependencies=dependencies, timestamp=_utc_timestamp())


# =============================================================================
# METRICS ENDPOINTS
# =============================================================================

@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Request counts and latency percentiles in Prometheus text format."
)
async def get_metrics() -> Response:
    return Response(
        content=get_metrics_collector().get_prometheus_format(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@router.get(
    "/metrics/json",
    response_model=MetricsResponse,
    summary="JSON metrics",
)
async def get_metrics_json() -> MetricsResponse:
    return MetricsResponse(**get_metrics_collector().get_summary())


@router.get("/", summary="API root")
async def root() -> Dict[str, Any]:
    """Basic API information and links."""
    return {
        "service": "Patient Records API",
        "version": VERSION,
        "docs": "/docs",
        "patients": "/patients",
        "health": "/health",
        "ready": "/ready",
        "metrics": "/metrics",
    }
