"""
OmniCall - Backend Entrypoint

FastAPI application factory and server configuration.
Run with: uvicorn main:app --reload --port 3000
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from omnicall import __version__
from omnicall.config import Settings, get_settings
from omnicall.api import routes, health
from omnicall.core.exceptions import OmniCallError
from omnicall.core.logging import setup_structured_logging
from omnicall.directory.store import (
    InMemoryCompanyStore,
    create_customer_directory,
    load_directory_seed,
)
from omnicall.telephony import router as telephony

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Configure logging
        - Load the directory seed file, if one is configured
    """
    settings: Settings = app.state.settings
    setup_structured_logging(settings.app_log_level, settings.log_json)

    # === Startup ===
    logger.info("OmniCall backend starting in %s mode", settings.app_env)

    if settings.directory_seed_path:
        companies, customers = await load_directory_seed(
            settings.directory_seed_path,
            app.state.companies,
            app.state.customers,
        )
        logger.info("   Directory: %d companies, %d customers", companies, customers)

    logger.info(
        "   Telephony: provider=%s, webhook_validation=%s, agent=%s",
        settings.telephony_provider,
        settings.webhook_validation_enabled,
        settings.default_agent_id,
    )

    yield

    # === Shutdown ===
    logger.info("OmniCall backend shutting down")


async def omnicall_error_handler(request: Request, exc: OmniCallError) -> JSONResponse:
    """Render domain errors as ``{"detail": ..., "code": ...}``."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Settings override (default: environment settings)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="OmniCall",
        description="Softphone backend: customer directory and voice webhooks",
        version=__version__,
        docs_url="/docs" if settings.app_debug else None,
        redoc_url="/redoc" if settings.app_debug else None,
        lifespan=lifespan,
    )

    # Stores live on app state for dependency injection
    app.state.settings = settings
    app.state.companies = InMemoryCompanyStore()
    app.state.customers = create_customer_directory(settings)

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Errors ---
    app.add_exception_handler(OmniCallError, omnicall_error_handler)

    # --- Routes ---
    app.include_router(routes.router, prefix="/api")
    app.include_router(health.router)
    app.include_router(telephony.router)

    @app.get("/")
    async def root():
        """Root health check."""
        return {
            "service": "OmniCall",
            "status": "operational",
            "version": __version__,
        }

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    return app


# Create app instance
app = create_app()
