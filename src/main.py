"""
Main FastAPI application entry point.
Configures and initializes the CSV Ingestion API.
"""
import time
from contextlib import asynccontextmanager
import structlog
from fastapi import FastAPI, Request
from mangum import Mangum
from src.core.config import settings
from src.core.dependencies import get_ingestion_scheduler
from src.core.exception_handler import register_exception_handlers
from src.core.logging import configure_logging
from src.api.routes import health_routes, job_routes

configure_logging(settings.log_level, json_output=settings.log_json)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("api_started", environment=settings.environment, ingestion_mode=settings.ingestion_mode)
    yield
    # let queued ingestions finish before the process exits
    if settings.ingestion_mode == "local":
        get_ingestion_scheduler().shutdown(wait=True)
    logger.info("api_stopped")


# Create FastAPI application
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="Schema-validated asynchronous CSV ingestion service",
    root_path=f"/{settings.environment}",
    lifespan=lifespan
)

# Register exception handlers
register_exception_handlers(app)

# Register routes
app.include_router(health_routes.router)
app.include_router(job_routes.router)

# Middleware to log requests with their duration
@app.middleware("http")
async def log_request(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2)
    )
    return response

# Lambda handler for AWS, where ingestion runs in the S3-triggered function
handler = Mangum(app, lifespan="off")


# For local development
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
