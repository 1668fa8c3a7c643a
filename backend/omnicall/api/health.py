"""
OmniCall - Health Check Endpoints

System health monitoring endpoints for load balancers, monitoring,
and operational visibility.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

router = APIRouter(prefix="/api/system", tags=["system"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/ready")
async def readiness_check() -> dict:
    """
    Readiness probe for container orchestration.
    
    Returns 200 if the service is ready to accept requests.
    """
    return {
        "ready": True,
        "timestamp": _timestamp(),
    }


@router.get("/live")
async def liveness_check() -> dict:
    """Liveness probe. Returns 200 if the service is alive."""
    return {
        "alive": True,
        "timestamp": _timestamp(),
    }


@router.get("/config")
async def config_info(request: Request) -> dict:
    """
    Non-sensitive configuration information.
    
    Excludes the auth token and the caller-id number.
    """
    settings = request.app.state.settings
    return {
        "environment": settings.app_env,
        "debug": settings.app_debug,
        "log_level": settings.app_log_level,
        "telephony": {
            "provider": settings.telephony_provider,
            "webhook_validation": settings.webhook_validation_enabled,
            "default_agent_id": settings.default_agent_id,
        },
        "dialing": {
            "default_country_code": settings.default_country_code,
        },
        "directory": {
            "seeded": bool(settings.directory_seed_path),
            "customers": await request.app.state.customers.count(),
            "companies": await request.app.state.companies.count(),
        },
        "timestamp": _timestamp(),
    }
