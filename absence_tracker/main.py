"""Absence Tracker — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from absence_tracker import __version__
from absence_tracker.absences.router import router as absences_router
from absence_tracker.auth.router import router as auth_router
from absence_tracker.common.exceptions import register_exception_handlers
from absence_tracker.common.rate_limit import limiter
from absence_tracker.config import settings
from absence_tracker.core_hr.router import (
    companies_router,
    departments_router,
    employees_router,
    work_groups_router,
)
from absence_tracker.dashboard.router import router as dashboard_router
from absence_tracker.database import engine
from absence_tracker.reports.router import router as reports_router
from absence_tracker.work_hours.router import router as work_hours_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("Absence Tracker %s starting (%s)", __version__, settings.ENVIRONMENT)
    yield
    await engine.dispose()
    logger.info("Absence Tracker stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="Absence Tracker",
        description="Employee absences, work hours and absence reports",
        version=__version__,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": __version__,
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(companies_router, prefix="/api/v1/companies", tags=["companies"])
    app.include_router(departments_router, prefix="/api/v1/departments", tags=["departments"])
    app.include_router(work_groups_router, prefix="/api/v1/work-groups", tags=["work-groups"])
    app.include_router(employees_router, prefix="/api/v1/employees", tags=["employees"])
    app.include_router(absences_router, prefix="/api/v1/absences", tags=["absences"])
    app.include_router(work_hours_router, prefix="/api/v1/work-hours", tags=["work-hours"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["dashboard"])
    app.include_router(reports_router, prefix="/api/v1/reports", tags=["reports"])

    return app


app = create_app()
