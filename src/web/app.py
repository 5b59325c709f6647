"""
FastAPI application for the quote pricing portal.

Routes:
- POST /api/pricing/calculate : live fees for the quote form
- GET  /api/pricing/tables    : active pricing tables
- POST /api/approval/request  : request a cleanup override approval code
- POST /api/approval/validate : check an approval code
- POST /api/quotes/prepare    : validated quote record and CRM payload
- GET  /health                : health check
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import Settings, get_settings
from middleware.correlation import CorrelationIdMiddleware
from pricing.tables import get_pricing_tables
from services.logging_config import configure_logging
from web.api_errors import register_exception_handlers
from web.routers import approval_router, health_router, pricing_router, quotes_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use; defaults to get_settings()
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(level=settings.log_level, json_output=settings.log_json)
        # Fail at startup, not on the first quote, if the tables are broken
        tables = get_pricing_tables(settings.pricing_table_version)
        logger.info(
            f"{settings.name} {settings.version} started "
            f"(environment={settings.environment}, pricing tables={tables.version})"
        )
        yield

    app = FastAPI(
        title=settings.name,
        version=settings.version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Last added = first executed
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
    app.add_middleware(CorrelationIdMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(pricing_router)
    app.include_router(approval_router)
    app.include_router(quotes_router)

    return app


app = create_app()
