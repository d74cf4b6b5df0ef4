"""
Health Check Endpoints

Endpoints:
- GET /api/health - Liveness of the flashstudy API
- GET /api/health/detailed - Database reachability and configured AI models

The detailed check reports "degraded" rather than failing when the
database is unreachable, since contribution reads fail open anyway.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from flashstudy.config import settings
from flashstudy.db.base import get_db

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health_check():
    """Report that the API process is up."""
    return {"status": "healthy", "service": settings.APP_NAME}


@router.get("/detailed")
async def detailed_health_check(db: AsyncSession = Depends(get_db)):
    """Check the contribution database and list the AI model chain."""
    models = [m for m in (settings.TEXT_MODEL, settings.FALLBACK_TEXT_MODEL) if m]
    health = {
        "status": "healthy",
        "service": settings.APP_NAME,
        "dependencies": {"ai": {"models": models}},
    }

    try:
        await db.execute(text("SELECT 1"))
        health["dependencies"]["database"] = {"status": "healthy"}
    except Exception as e:
        health["dependencies"]["database"] = {"status": "unhealthy", "error": str(e)}
        health["status"] = "degraded"

    return health
