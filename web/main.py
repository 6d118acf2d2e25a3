"""FastAPI application for the EcoLimpio website backend"""

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ecolimpio.app import EcoLimpioApp
from ecolimpio.utils.logger import get_logger

from .errors import register_error_handlers
from .gatekeeper import GatekeeperMiddleware
from .maintenance import start_maintenance, stop_maintenance
from .routes import admin_router, auth_router, booking_router, contact_router, pages_router

logger = get_logger(__name__)


def create_app(ecolimpio: Optional[EcoLimpioApp] = None, run_maintenance: Optional[bool] = None) -> FastAPI:
    """
    Build the FastAPI app around an EcoLimpioApp container.

    Pass a prepared container to inject settings, storage or external clients
    (tests do); otherwise one is built from the loaded configuration.
    """
    ecolimpio = (ecolimpio or EcoLimpioApp()).initialize()
    settings = ecolimpio.settings
    if run_maintenance is None:
        run_maintenance = settings.maintenance.enabled

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if run_maintenance:
            try:
                start_maintenance(ecolimpio, interval_seconds=settings.maintenance.interval_seconds)
            except Exception as e:
                logger.error("Failed to start maintenance job", error=str(e), exc_info=True)
        logger.info("EcoLimpio startup completed", environment=settings.app.environment)
        yield
        logger.info("Shutdown event triggered - stopping background jobs")
        if run_maintenance:
            try:
                stop_maintenance()
            except Exception as e:
                logger.warning("Error stopping maintenance job", error=str(e))
        logger.info("Shutdown complete")

    app = FastAPI(
        title=f"{settings.app.name} API",
        description="Bookings, contact messages and staff panel for EcoLimpio",
        version=settings.app.version,
        lifespan=lifespan,
    )
    app.state.ecolimpio = ecolimpio

    # CORS middleware - configurable for production
    cors_origins = os.getenv("CORS_ORIGINS")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins.split(",") if cors_origins else [settings.app.base_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Added last so it runs first, before routing sees the hashed path
    app.add_middleware(GatekeeperMiddleware, ecolimpio=ecolimpio)

    register_error_handlers(app)

    app.include_router(auth_router)
    app.include_router(booking_router)
    app.include_router(contact_router)
    app.include_router(admin_router)
    app.include_router(pages_router)
    return app
