"""
Job Service for business logic.
Creates ingestion jobs, triggers their processing and reports on them.
"""
from typing import Any, BinaryIO, Dict, Optional
from src.core import config
from src.core.exceptions import JobNotFoundException
from src.models.column_schema import ColumnSchema
from src.models.job import Job, JobStatus, ProcessingError
from src.models.dto.job_dto import (
    JobSummaryResponse,
    JobUploadResponse,
    PaginatedResponse,
    ProcessingErrorResponse
)
from src.repositories.job_repository import JobRepository
from src.repositories.s3_repository import S3Repository
from src.services.ingestion_scheduler import IngestionScheduler


class JobService:
    """Service for ingestion job operations."""

    def __init__(
        self,
        job_repository: JobRepository,
        s3_repository: S3Repository = None,
        scheduler: Optional[IngestionScheduler] = None
    ):
        self.job_repository = job_repository
        self.s3_repository = s3_repository or S3Repository()
        self.scheduler = scheduler

    def create_job(self, schema: ColumnSchema) -> str:
        """Persist a new PENDING job and return its id."""
        return self.job_repository.create_job(schema)

    def submit_upload(self, file: BinaryIO, filename: str, schema: ColumnSchema) -> JobUploadResponse:
        """
        Handle the CSV upload workflow.

        The job is created before the file lands in S3 so the job exists
        whichever processor picks the file up first. In local mode the job
        is queued on the in-process scheduler; otherwise the S3 event
        drives the csv_processor Lambda.

        Args:
            file: Uploaded CSV content
            filename: Original filename
            schema: Expected column format

        Returns:
            JobUploadResponse with the job id

        Raises:
            DynamoDBException: If the job cannot be created
            S3Exception: If S3 upload fails
        """
        job_id = self.create_job(schema)

        s3_key = S3Repository.build_upload_key(job_id, filename)
        upload_result = self.s3_repository.upload_file(file, s3_key)

        if config.settings.ingestion_mode == "local" and self.scheduler is not None:
            self.scheduler.submit(job_id, lambda: self.s3_repository.open_stream(s3_key), schema)

        return JobUploadResponse(
            job_id=job_id,
            status=JobStatus.PENDING.value,
            message="File uploaded successfully. Processing in progress.",
            s3_location=upload_result['s3_location']
        )

    def get_job_summary(self, job_id: str) -> JobSummaryResponse:
        """
        Get a job's processing status.

        Raises:
            JobNotFoundException: If job_id not found
        """
        job = self._get_existing_job(job_id)

        return JobSummaryResponse(
            job_id=job.job_id,
            status=job.status.value,
            error_count=job.error_count,
            processed_count=job.processed_count,
            fault_count=job.fault_count,
            failure_message=job.failure_message,
            created_at=job.created_at,
            updated_at=job.updated_at
        )

    def get_errors_page(self, job_id: str, page: int, size: int) -> PaginatedResponse[ProcessingErrorResponse]:
        """
        Get one page of a job's row errors.

        An empty page is ambiguous between "no errors" and "no such job",
        so a zero total is followed by an existence check.

        Raises:
            JobNotFoundException: If job_id not found
        """
        result = self.job_repository.get_errors_page(job_id, page, size)

        if result.total == 0:
            self._get_existing_job(job_id)

        return PaginatedResponse[ProcessingErrorResponse](
            data=[self._error_to_response(error) for error in result.data],
            total=result.total,
            page=result.page,
            size=result.size
        )

    def get_processed_page(self, job_id: str, page: int, size: int) -> PaginatedResponse[Dict[str, Any]]:
        """
        Get one page of a job's validated records.

        Raises:
            JobNotFoundException: If job_id not found
        """
        result = self.job_repository.get_processed_page(job_id, page, size)

        if result.total == 0:
            self._get_existing_job(job_id)

        return PaginatedResponse[Dict[str, Any]](
            data=result.data,
            total=result.total,
            page=result.page,
            size=result.size
        )

    def _get_existing_job(self, job_id: str) -> Job:
        job = self.job_repository.get_job(job_id)
        if job is None:
            raise JobNotFoundException(f"Job '{job_id}' not found")
        return job

    def _error_to_response(self, error: ProcessingError) -> ProcessingErrorResponse:
        return ProcessingErrorResponse(column=error.column, row=error.row, message=error.message)
