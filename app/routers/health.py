"""Health check endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
import logging

from ..core.cache import cache
from ..core.config import settings
from ..core.database import get_db, health_check_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])

@router.get("/")
async def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "service": "SchoolHub API",
        "version": settings.app_version,
        "environment": settings.environment
    }

@router.get("/db")
async def database_health(session: AsyncSession = Depends(get_db)):
    """Database health check using the session dependency"""
    try:
        result = await session.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected", "test_result": result.scalar()}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": "disconnected",
            "error": str(e),
            "error_type": type(e).__name__
        }

@router.get("/full")
async def full_health_check():
    """Comprehensive health check"""
    components = {"service": "healthy"}

    components["database"] = "healthy" if await health_check_db() else "unhealthy"

    if not cache.enabled:
        components["cache"] = "disabled"
    else:
        components["cache"] = "healthy" if await cache.ping() else "unhealthy"

    overall_status = "healthy" if all(
        status in ("healthy", "disabled") for status in components.values()
    ) else "degraded"

    return {"status": overall_status, "components": components}
