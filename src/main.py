"""
SLA Tracker - Main Application
==============================

Service-Level-Agreement tracking for issue tracker projects.

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Snapshots, rules, calculator, performance aggregation
- Infrastructure: Settings store (YAML persistence, hot reload)
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from config import Settings, settings as default_settings
from core import ApplicationException

# SLA Module
from sla.infrastructure import SLASettingsStore
from sla.interfaces import sla_router

# Shared
from shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)


def create_app(
    app_settings: Optional[Settings] = None,
    settings_store: Optional[SLASettingsStore] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        app_settings: Application settings (environment-derived by default)
        settings_store: Pre-built SLA settings store; when omitted one is
            loaded from ``app_settings.sla_settings_path`` at startup
    """
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        """
        STARTUP:
        1. Setup structured logging
        2. Load SLA settings
        3. Start watching the settings file

        SHUTDOWN:
        1. Stop the settings file watcher
        """
        setup_logging(app_settings.log_level, app_settings.environment)
        logger.info("Starting SLA Tracker", extra={
            "version": app_settings.app_version,
            "environment": app_settings.environment
        })

        store = settings_store
        if store is None:
            store = SLASettingsStore()
            store.load(app_settings.sla_settings_path)
            if app_settings.watch_settings_file:
                store.start_watching()
        app.state.settings_store = store

        logger.info("SLA Tracker started successfully")

        yield  # Application runs here

        logger.info("Shutting down SLA Tracker")
        store.stop_watching()
        logger.info("SLA Tracker shutdown complete")

    app = FastAPI(
        title="SLA Tracker API",
        description="""
        ## SLA compliance for issue tracker projects

        - `POST /sla/evaluate` - First-response and resolution SLA status per issue
        - `POST /sla/performance` - Developer workload, compliance and team averages
        - `/sla/settings` - Rules, business hours, holidays, project key; export/import
        """,
        version=app_settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.settings = app_settings
    if settings_store is not None:
        app.state.settings_store = settings_store

    # === CORS Middleware ===
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # === Custom Middleware (from shared) ===
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # === Include Module Routers ===
    app.include_router(sla_router)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint for load balancers and orchestrators."""
        store = getattr(request.app.state, "settings_store", None)
        checks = {
            "sla_settings": "loaded" if store is not None else "not_loaded",
            "settings_watcher": "running" if store is not None and store.is_watching else "stopped",
        }
        return {
            "status": "healthy",
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "checks": checks
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": app_settings.app_name,
            "version": app_settings.app_version,
            "docs": "/docs",
            "health": "/health",
            "modules": {
                "sla": {
                    "prefix": "/sla",
                    "endpoints": [
                        "POST /sla/evaluate - Evaluate issue batch",
                        "POST /sla/evaluate/jira - Evaluate native tracker issues",
                        "POST /sla/performance - Developer performance",
                        "GET /sla/settings - Current settings",
                        "GET /sla/settings/export - Export settings",
                        "POST /sla/settings/import - Import settings"
                    ]
                }
            }
        }

    return app


app = create_app()


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.environment == "development",
        log_level="info"
    )
