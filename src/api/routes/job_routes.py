"""
Job API routes.
Handles CSV uploads and the job status, errors and processed-data views.
"""
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, UploadFile, File, HTTPException, status, Query
from src.services.file_service import FileService
from src.services.job_service import JobService
from src.core.dependencies import get_file_service, get_job_service
from src.models.column_schema import ColumnSchema
from src.models.dto.job_dto import (
    JobSummaryResponse,
    JobUploadResponse,
    PaginatedResponse,
    ProcessingErrorResponse
)
from src.core import config

router = APIRouter(prefix="/v1/api")


@router.post("/jobs", tags=["Jobs"], response_model=JobUploadResponse, status_code=status.HTTP_202_ACCEPTED)
async def upload_csv(
    file: UploadFile = File(..., description="CSV file to ingest"),
    expected_format: str = Query(
        ...,
        description='JSON object of {column_key: {"name": field_name, "type": "string|number|boolean"}}'
    ),
    job_service: JobService = Depends(get_job_service),
    file_service: FileService = Depends(get_file_service)
):
    """
    Upload a CSV file with its expected column format.

    The file is validated and ingested asynchronously; poll the job for results.
    """
    schema = ColumnSchema.from_json(expected_format)

    content = await file.read()
    file_service.validate_upload(file.filename, len(content))

    # Reset file pointer for processing
    await file.seek(0)

    return job_service.submit_upload(file.file, file.filename, schema)


@router.get("/jobs/{job_id}", tags=["Jobs"], response_model=JobSummaryResponse)
async def get_job_status(
    job_id: str,
    job_service: JobService = Depends(get_job_service)
):
    """
    Get the processing status of an ingestion job.
    """
    return job_service.get_job_summary(job_id)


@router.get("/jobs/{job_id}/errors", tags=["Jobs"], response_model=PaginatedResponse[ProcessingErrorResponse])
async def get_job_errors(
    job_id: str,
    page: int = Query(default=0, ge=0, description="Zero-based page index"),
    size: Optional[int] = Query(default=None, ge=1, description="Number of items per page"),
    job_service: JobService = Depends(get_job_service)
):
    """
    Retrieve a job's row validation errors in file order.

    - **page**: Zero-based page index
    - **size**: Items per page (default and maximum come from settings)
    """
    return job_service.get_errors_page(job_id, page, _page_size(size))


@router.get("/jobs/{job_id}/processed-data", tags=["Jobs"], response_model=PaginatedResponse[Dict[str, Any]])
async def get_job_processed_data(
    job_id: str,
    page: int = Query(default=0, ge=0, description="Zero-based page index"),
    size: Optional[int] = Query(default=None, ge=1, description="Number of items per page"),
    job_service: JobService = Depends(get_job_service)
):
    """
    Retrieve a job's validated records in file order.
    """
    return job_service.get_processed_page(job_id, page, _page_size(size))


def _page_size(size: Optional[int]) -> int:
    if size is None:
        return config.settings.pagination_default_size
    if size > config.settings.pagination_max_size:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Page size must not exceed {config.settings.pagination_max_size}"
        )
    return size
