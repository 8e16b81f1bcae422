"""
Service information and liveness endpoints.
"""

from fastapi import APIRouter, Depends

from api.deps import get_app_settings, utc_now_iso
from api.models import HealthResponse, ServiceInfoResponse
from config.settings import Settings
from telemetry.correlated_logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["service"])

ENDPOINTS = [
    "GET /health",
    "POST /api/users",
    "GET /api/users/:id",
    "POST /api/orders",
    "GET /api/orders/:id",
    "GET /api/simulate-error?error_type=<type>",
    "GET /api/slow-operation",
    "GET /api/database-query",
]


@router.get("/", response_model=ServiceInfoResponse)
async def root(settings: Settings = Depends(get_app_settings)):
    """Service info"""
    logger.info("Root endpoint called")
    return ServiceInfoResponse(
        message="Trace/log correlation demo API",
        service=settings.service_name,
        version=settings.service_version,
        environment=settings.environment,
        endpoints=ENDPOINTS,
    )


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_app_settings)):
    """Liveness check; always healthy while the process serves requests."""
    logger.info("Health check called")
    return HealthResponse(
        status="healthy",
        version=settings.service_version,
        timestamp=utc_now_iso(),
    )
