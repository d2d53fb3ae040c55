"""
Abstract base class for job stores.
Defines the contract the ingestion pipeline and job service rely on.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from src.models.column_schema import ColumnSchema
from src.models.job import Job, JobStatus, PaginatedResult, ProcessingError


class JobRepository(ABC):
    """Abstract repository interface for ingestion jobs."""

    @abstractmethod
    def create_job(self, schema: ColumnSchema) -> str:
        """Persist a new PENDING job and return its id."""
        pass

    @abstractmethod
    def get_job(self, job_id: str) -> Optional[Job]:
        """Fetch a job, or None if it does not exist."""
        pass

    @abstractmethod
    def update_job_status(
        self,
        job_id: str,
        status: JobStatus,
        fault_count: Optional[int] = None,
        failure_message: Optional[str] = None
    ) -> None:
        """Move a job to a new status."""
        pass

    @abstractmethod
    def append_processed_row(self, job_id: str, record: Dict[str, Any]) -> None:
        """Append a validated record to the job's processed data."""
        pass

    @abstractmethod
    def append_processing_error(self, job_id: str, error: ProcessingError) -> None:
        """Append a row validation error to the job's errors."""
        pass

    @abstractmethod
    def get_errors_page(self, job_id: str, page: int, size: int) -> PaginatedResult[ProcessingError]:
        """Read one page of the job's errors in arrival order."""
        pass

    @abstractmethod
    def get_processed_page(self, job_id: str, page: int, size: int) -> PaginatedResult[Dict[str, Any]]:
        """Read one page of the job's processed rows in arrival order."""
        pass
