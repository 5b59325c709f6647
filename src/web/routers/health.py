"""
Health Check Endpoint

/health reports the service version and whether the pricing tables load.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from config.pricing_config_loader import PricingConfigError
from config.settings import get_settings
from pricing.tables import get_pricing_tables

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = datetime.now(timezone.utc)


@router.get("/health")
async def health():
    """Liveness plus a pricing tables check."""
    settings = get_settings()
    payload = {
        "status": "healthy",
        "service": settings.name,
        "version": settings.version,
        "environment": settings.environment,
        "uptime_seconds": int((datetime.now(timezone.utc) - _start_time).total_seconds()),
    }
    try:
        payload["pricing_tables"] = get_pricing_tables().version
    except PricingConfigError as e:
        logger.error(f"Health check: pricing tables unavailable: {e}")
        payload["status"] = "unhealthy"
        payload["pricing_tables"] = None
        return JSONResponse(status_code=503, content=payload)
    return payload
