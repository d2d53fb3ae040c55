"""
Global exception handler for the CSV Ingestion API.
Provides centralized error handling for all API exceptions.
"""
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from .exceptions import (
    JobNotFoundException,
    JobStateException,
    ValidationException,
    S3Exception,
    DynamoDBException,
    CSVProcessingException
)

logger = structlog.get_logger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""

    @app.exception_handler(JobNotFoundException)
    async def handle_not_found(request: Request, exc: JobNotFoundException):
        return JSONResponse(
            status_code=404,
            content={"error": "Not Found", "message": exc.message}
        )

    @app.exception_handler(ValidationException)
    async def handle_validation_error(request: Request, exc: ValidationException):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation Error", "message": exc.message}
        )

    @app.exception_handler(JobStateException)
    async def handle_job_state_error(request: Request, exc: JobStateException):
        return JSONResponse(
            status_code=409,
            content={"error": "Conflict", "message": exc.message}
        )

    @app.exception_handler(S3Exception)
    async def handle_s3_error(request: Request, exc: S3Exception):
        logger.error("s3_error", path=request.url.path, error=exc.message)
        return JSONResponse(
            status_code=500,
            content={"error": "S3 Upload Failed", "message": exc.message}
        )

    @app.exception_handler(DynamoDBException)
    async def handle_dynamodb_error(request: Request, exc: DynamoDBException):
        logger.error("dynamodb_error", path=request.url.path, error=exc.message)
        return JSONResponse(
            status_code=500,
            content={"error": "Database Error", "message": exc.message}
        )

    @app.exception_handler(CSVProcessingException)
    async def handle_csv_error(request: Request, exc: CSVProcessingException):
        return JSONResponse(
            status_code=400,
            content={"error": "CSV Processing Failed", "message": exc.message}
        )

    @app.exception_handler(Exception)
    async def handle_generic_error(request: Request, exc: Exception):
        logger.error("unhandled_error", path=request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "message": "An unexpected error occurred"}
        )
