"""Leavedesk — FastAPI Application Factory."""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from leavedesk import __version__
from leavedesk.common.constants import REQUEST_ID_HEADER
from leavedesk.common.exceptions import register_exception_handlers
from leavedesk.common.log import configure_logging, get_logger
from leavedesk.common.rate_limit import limiter
from leavedesk.config import settings
from leavedesk.database import create_tables, engine
from leavedesk.leave.router import manager_router
from leavedesk.leave.router import router as leave_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    if settings.AUTO_CREATE_TABLES:
        await create_tables()
        logger.info("schema_ready mode=auto_create")
    logger.info("server_start environment=%s", settings.ENVIRONMENT)
    yield
    await engine.dispose()
    logger.info("server_stop")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="Leave Management System",
        description="Employee leave requests with manager review and email outcomes",
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
    app.add_middleware(SlowAPIMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request id: taken from the caller or generated, echoed on every response
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    # Health check (no auth)
    @app.get("/health", tags=["system"])
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "ok",
            "version": __version__,
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(leave_router, prefix="/api/v1/leave", tags=["leave"])
    app.include_router(manager_router, prefix="/api/v1/manager/leave", tags=["manager"])

    return app


app = create_app()
