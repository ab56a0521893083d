"""
RouletteBot - FastAPI Application
=================================

FastAPI application factory and configuration.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.core.constants import BOT_VERSION
from src.core.logger import logger
from src.api.config import get_api_config
from src.api.dependencies import set_service
from src.api.errors import APIError, ErrorCode, error_response, from_roulette_error
from src.api.middleware import LoggingMiddleware
from src.api.routers import health_router, pools_router
from src.api.routers.health import set_start_time
from src.services.roulette import RouletteError, RouletteService


# =============================================================================
# Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    set_start_time()
    logger.tree("API Starting", [
        ("Version", BOT_VERSION),
        ("Framework", "FastAPI"),
    ], emoji="🚀")

    yield

    logger.tree("API Stopping", [], emoji="🛑")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(service: Optional[RouletteService] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        service: Roulette service for dependency injection

    Returns:
        Configured FastAPI application
    """
    config = get_api_config()

    app = FastAPI(
        title="RouletteBot API",
        description="Read-only pool, history, and statistics API for RouletteBot",
        version=BOT_VERSION,
        docs_url="/api/roulette/docs" if config.debug else None,
        redoc_url="/api/roulette/redoc" if config.debug else None,
        openapi_url="/api/roulette/openapi.json" if config.debug else None,
        lifespan=lifespan,
    )

    if service is not None:
        set_service(service)

    # ==========================================================================
    # Middleware (order matters - last added = first executed)
    # ==========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_middleware(LoggingMiddleware)

    # ==========================================================================
    # Exception Handlers
    # ==========================================================================

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        """Handle APIError exceptions with structured response."""
        logger.tree("API Error", [
            ("Path", str(request.url.path)[:50]),
            ("Code", exc.error_code.value),
            ("Status", str(exc.status_code)),
        ], emoji="⚠️")

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error_code": exc.error_code.value,
                "message": exc.error_message,
                "details": exc.error_details,
            },
            headers=exc.headers,
        )

    @app.exception_handler(RouletteError)
    async def roulette_error_handler(request: Request, exc: RouletteError):
        """Handle roulette errors that escaped a route."""
        return await api_error_handler(request, from_roulette_error(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Render query/path validation failures in the structured format."""
        errors = [
            {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        return error_response(ErrorCode.VALIDATION_FAILED, details={"errors": errors})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error_tree("Unhandled API Error", exc, [
            ("Path", str(request.url.path)[:50]),
        ])

        return error_response(ErrorCode.SERVER_ERROR)

    # ==========================================================================
    # Routers
    # ==========================================================================

    app.include_router(health_router)
    app.include_router(pools_router)

    return app


__all__ = ["create_app"]
