"""
FastAPI application factory
Wires the datasource by hand, then sets up middleware, exception handlers,
routers and core endpoints
"""
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import Engine

from walkin.api import admin_routes, approval_routes, attendance_routes, auth_routes
from walkin.core.config import Settings, settings as default_settings
from walkin.core.db import build_engine, create_session_factory, init_db
from walkin.core.logger import configure_logging, get_logger
from walkin.schemas.common import ErrorResponse, HealthCheckResponse
from walkin.services.errors import WalkinError
from walkin.services.events import EventBroadcaster
from walkin.services.offices import initialize_default_offices

logger = get_logger("app")

ROUTERS = (
    auth_routes.router,
    attendance_routes.router,
    approval_routes.router,
    admin_routes.router,
)


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id") or str(uuid.uuid4())


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the application around an explicitly wired datasource.

    Args:
        settings: Configuration; defaults to the environment-loaded settings
        engine: Datasource; when omitted one is built from DATABASE_URL.
            Nothing connects until the lifespan starts.
    """
    config = settings or default_settings
    configure_logging(config.LOG_LEVEL)
    owns_engine = engine is None
    engine = engine or build_engine(config.DATABASE_URL, config.DATABASE_POOL_SIZE, config.DATABASE_ECHO)

    # Lifecycle management
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application startup and shutdown lifecycle"""
        # Startup
        logger.info("Starting Walkin API...")
        init_db(engine, retries=config.DATABASE_CONNECT_RETRIES)
        logger.info("✓ Database initialized")

        if config.SEED_DEFAULT_OFFICES:
            db = app.state.session_factory()
            try:
                seeded = initialize_default_offices(db)
            finally:
                db.close()
            if seeded:
                logger.info(f"✓ Seeded {len(seeded)} default offices")

        logger.info(f"✓ Business timezone: {config.TIMEZONE}")
        logger.info(f"✓ Geofence radii: check-in {config.CHECK_IN_RADIUS}m, check-out {config.CHECK_OUT_RADIUS}m")

        yield

        # Shutdown
        logger.info("Shutting down Walkin API...")
        if owns_engine:
            engine.dispose()

    app = FastAPI(
        title=config.API_TITLE,
        description=config.API_DESCRIPTION,
        version=config.API_VERSION,
        lifespan=lifespan
    )

    app.state.settings = config
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.broadcaster = EventBroadcaster(queue_size=config.STREAM_QUEUE_SIZE)

    # === CORS Middleware ===
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # === Exception Handlers ===
    @app.exception_handler(WalkinError)
    async def walkin_exception_handler(request: Request, exc: WalkinError):
        """Render domain errors with their own status and code"""
        request_id = _request_id(request)
        logger.warning(f"[{request_id}] {exc.error_code} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=exc.message,
                error_code=exc.error_code,
                request_id=request_id,
                details=exc.details,
            ).model_dump(mode="json")
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors with structured response"""
        logger.warning(f"Validation error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error="Request validation failed",
                error_code="VALIDATION_ERROR",
                request_id=_request_id(request),
                details={"errors": [
                    {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
                    for error in exc.errors()
                ]},
            ).model_dump(mode="json")
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler"""
        request_id = _request_id(request)
        logger.error(f"Unhandled exception (ID: {request_id}): {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Internal server error",
                error_code="INTERNAL_ERROR",
                request_id=request_id
            ).model_dump(mode="json")
        )

    for router in ROUTERS:
        app.include_router(router, prefix="/api/v1")

    # === Health Check ===
    @app.get("/health", response_model=HealthCheckResponse)
    async def health_check(request: Request):
        """System health status endpoint - probes the datasource"""
        components = {"api": "operational", "database": "unknown"}
        overall_status = "healthy"

        try:
            with request.app.state.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            components["database"] = "operational"
            logger.debug("✓ Database health check passed")
        except Exception as e:
            components["database"] = f"degraded: {str(e)[:50]}"
            overall_status = "degraded"
            logger.warning(f"Database health check failed: {e}")

        return HealthCheckResponse(status=overall_status, components=components)

    @app.get("/")
    async def root():
        """Welcome endpoint with API information"""
        return {
            "name": config.API_TITLE,
            "version": config.API_VERSION,
            "status": "operational",
            "docs": "/docs",
            "health": "/health",
            "timezone": config.TIMEZONE
        }

    return app
