"""
CPE Extraction Service - Main Application
=========================================

FastAPI application for LLM-based extraction of CPA continuing-education
requirements from state statute text.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.cpe_extraction.errors import ExtractionError
from services.cpe_extraction.routes import extraction, requirements
from shared.config import settings
from shared.database.mongodb import MongoDBClient
from shared.logging import get_logger, setup_logging
from shared.models.common import ErrorResponse, HealthResponse


# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="cpe-extraction",
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "cpe_extraction_starting",
        environment=settings.environment.value,
        port=settings.ports.cpe_extraction,
    )

    # Startup
    try:
        MongoDBClient.get_client()
        await MongoDBClient.create_indexes()
        logger.info("mongodb_connected")
    except Exception as e:
        logger.error("startup_failed", error=str(e))
        raise

    if not settings.llm.openai.api_key.get_secret_value():
        logger.warning("openai_api_key_missing")

    yield

    # Shutdown
    logger.info("cpe_extraction_shutting_down")
    await MongoDBClient.close()


# Create FastAPI application
app = FastAPI(
    title="CPE Requirement Extraction Service",
    description="LLM-powered extraction of CPA continuing-education requirements",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Returns health status of the service and its dependencies.
    """
    components: dict[str, dict[str, Any]] = {
        "mongodb": await MongoDBClient.health_check(),
        "llm": {
            "status": "healthy" if settings.llm.openai.api_key.get_secret_value() else "unconfigured",
            "provider": "openai",
            "default_model": settings.extraction.default_model,
        },
    }

    all_healthy = all(c.get("status") == "healthy" for c in components.values())

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service="cpe-extraction",
        version="0.1.0",
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "CPE Requirement Extraction Service",
        "version": "0.1.0",
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    extraction.router,
    prefix="/api/v1/regulatory/cpa",
    tags=["Extraction"],
)

app.include_router(
    requirements.router,
    prefix="/api/v1/regulatory/cpa/requirements",
    tags=["Requirements"],
)


# ============================================================================
# Error Handlers
# ============================================================================


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


@app.exception_handler(ExtractionError)
async def extraction_exception_handler(request: Request, exc: ExtractionError) -> JSONResponse:
    """Handle request-aborting extraction errors."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "extraction_error",
        status_code=exc.status_code,
        error=exc.message,
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions, including routing 404s and 405s."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed path and query parameters."""
    errors = exc.errors()
    loc = errors[0].get("loc", ()) if errors else ()
    field = str(loc[-1]) if loc else "request"

    logger.warning(
        "request_validation_error",
        field=field,
        errors=len(errors),
        path=request.url.path,
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, f"Invalid field: {field}")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.cpe_extraction.main:app",
        host="0.0.0.0",
        port=settings.ports.cpe_extraction,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
