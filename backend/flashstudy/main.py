"""
Flashstudy API

Application factory wiring CORS, error handling, rate limiting and the
routers.

Run with:
    uvicorn flashstudy.main:app --reload
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flashstudy.config import settings
from flashstudy.middleware import setup_error_handling, setup_rate_limiting
from flashstudy.routers import contributions, health, sets, study

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=f"{settings.APP_NAME} API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_error_handling(app, debug=settings.DEBUG)
    setup_rate_limiting(app, enabled=settings.RATE_LIMIT_ENABLED)

    app.include_router(health.router)
    app.include_router(contributions.router)
    app.include_router(study.router)
    app.include_router(sets.router)

    logger.info(f"{settings.APP_NAME} API ready")
    return app


app = create_app()
