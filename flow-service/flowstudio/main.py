"""
Main FastAPI application for the flow studio service.

1. Architecture / thinking / wireframe / clarifying-question generation with heuristic fallback
2. Diagram layout and architecture export
3. Structured logging with correlation tracking
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uuid
import time

from flowstudio.config import settings
from flowstudio.core.logger import setup_logging
from flowstudio.services.generation import architecture_pipeline
from flowstudio.utils.logging import get_logger, log_context

from flowstudio.api.v1 import health, generate

setup_logging()
logger = get_logger(__name__)


# ============================================================================
# APPLICATION LIFESPAN
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan with structured logging"""

    with log_context(correlation_id=str(uuid.uuid4()), operation="startup"):
        logger.info(
            "app.startup.completed",
            extra={
                "service": settings.app_name,
                "version": settings.app_version,
                "environment": settings.environment,
                "text_generation": architecture_pipeline.client is not None,
                "model": settings.llm_model
            }
        )

    yield

    with log_context(correlation_id=str(uuid.uuid4()), operation="shutdown"):
        logger.info(
            "app.shutdown.completed",
            extra={"architecture_stats": architecture_pipeline.get_statistics()}
        )


# ============================================================================
# FASTAPI APP
# ============================================================================

app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="Turns app descriptions into editable screen-flow diagrams",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# REQUEST/RESPONSE LOGGING MIDDLEWARE
# ============================================================================

@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Log all HTTP requests with correlation tracking"""

    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    start_time = time.time()

    with log_context(
        correlation_id=correlation_id,
        operation=f"{request.method} {request.url.path}",
    ):
        logger.info(
            "http.request.received",
            extra={
                "path": request.url.path,
                "method": request.method,
                "client_ip": request.client.host if request.client else None
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "http.request.failed",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": (time.time() - start_time) * 1000
                },
                exc_info=e
            )
            raise

        logger.performance(
            "http.request.completed",
            duration_ms=(time.time() - start_time) * 1000,
            extra={
                "status_code": response.status_code,
                "path": request.url.path,
                "method": request.method
            }
        )

        response.headers["X-Correlation-ID"] = correlation_id
        return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Unexpected failures surface as the generic retry message"""

    logger.error(
        "app.exception.unhandled",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__
        },
        exc_info=exc
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "generation_failed",
            "message": "Generation failed, please retry.",
            "correlation_id": request.headers.get("X-Correlation-ID", "unknown")
        }
    )


# ============================================================================
# ROUTERS
# ============================================================================

app.include_router(health.router, tags=["Health"])

app.include_router(
    generate.router,
    prefix="/api/v1",
)


@app.get("/")
async def root():
    """Root endpoint with service info"""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "/docs",
        "health": {
            "basic": "/health",
            "liveness": "/health/live",
            "full": "/health/full"
        },
        "api": {
            "architecture": "POST /api/v1/generate-architecture",
            "thinking": "POST /api/v1/ai-thinking",
            "questions": "POST /api/v1/generate-questions",
            "wireframes": "POST /api/v1/generate-wireframes",
            "layout": "POST /api/v1/layout",
            "export": "POST /api/v1/export"
        }
    }


# ============================================================================
# DEVELOPMENT SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    logger.info(
        "app.dev_server.starting",
        extra={"host": "0.0.0.0", "port": 8000, "reload": settings.debug}
    )

    uvicorn.run(
        "flowstudio.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
