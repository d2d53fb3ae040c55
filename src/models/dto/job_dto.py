"""
Data Transfer Objects for the Jobs API.
Defines response schemas for upload, status and paginated endpoints.
"""
from datetime import datetime
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


class JobUploadResponse(BaseModel):
    """Response schema for an accepted CSV upload."""
    job_id: str = Field(..., description="Unique identifier for the ingestion job")
    status: str = Field(..., description="Job status")
    message: str = Field(..., description="Status message")
    s3_location: str = Field(..., description="S3 location of uploaded file")


class JobSummaryResponse(BaseModel):
    """Response schema for job status query."""
    job_id: str
    status: str
    error_count: int = 0
    processed_count: int = 0
    fault_count: int = 0
    failure_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProcessingErrorResponse(BaseModel):
    """A single row validation error."""
    column: str = Field(..., description="Source column key, empty when the whole row is malformed")
    row: int = Field(..., ge=2, description="CSV row number, the header being row 1")
    message: str


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of a job's errors or processed rows."""
    data: List[T]
    total: int = Field(..., ge=0, description="Size of the whole list")
    page: int = Field(..., ge=0)
    size: int = Field(..., gt=0)
