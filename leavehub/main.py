"""LeaveHub — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

# Model modules must be imported so every mapper is registered before use
import leavehub.common.audit  # noqa: F401
import leavehub.employees.models  # noqa: F401
import leavehub.leave.models  # noqa: F401
from leavehub.common.exceptions import register_exception_handlers
from leavehub.common.rate_limit import limiter
from leavehub.config import settings
from leavehub.dashboard import router as dashboard
from leavehub.database import engine
from leavehub.employees import router as employees
from leavehub.leave import router as leave

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("LeaveHub starting (environment=%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()
    logger.info("LeaveHub stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="LeaveHub",
        description="Leave balances, accrual, probation and paid/unpaid reporting",
        version="1.0.0",
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
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    # Register routers by role prefix
    for module in (leave, employees, dashboard):
        if hasattr(module, "employee_router"):
            app.include_router(module.employee_router, prefix="/api/v1/employee")
        app.include_router(module.manager_router, prefix="/api/v1/manager")
        app.include_router(module.admin_router, prefix="/api/v1/admin")

    return app


app = create_app()
