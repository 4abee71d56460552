"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from app.config import settings
from app.db.pool import db_health_check
from app.db.postgres import check_db
from app.services.telegram_client import telegram_client

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "circle-hours"}


@router.get("/readyz")
async def readyz():
    """Readiness check covering the database and required configuration."""
    checks = {}
    overall_ok = True

    t0 = time.time()
    db_result = await check_db()
    db_ok = db_result is True
    checks["postgres"] = {"ok": db_ok, "latency_ms": round((time.time() - t0) * 1000, 1)}
    if not db_ok:
        checks["postgres"]["error"] = db_result
    overall_ok = overall_ok and db_ok

    config_issues = []
    if not settings.JWT_SECRET:
        config_issues.append("JWT_SECRET not set")
    if not settings.BACKEND_URL:
        config_issues.append("BACKEND_URL not set")

    checks["configuration"] = {
        "ok": not config_issues,
        "issues": config_issues or None,
        "environment": settings.environment,
    }
    overall_ok = overall_ok and not config_issues

    # Reminders can't be delivered without a bot, but the API still serves
    checks["telegram"] = {"ok": telegram_client.configured}

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}


@router.get("/health/database")
async def database_health():
    """Detailed database pool health information."""
    return await db_health_check()
