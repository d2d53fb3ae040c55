"""
Ingestion Pipeline.
Streams a CSV file through row validation into the job store and drives
the job's status transitions.
"""
import time
from enum import Enum
from typing import Any, BinaryIO, Callable, List, Optional
import structlog
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from src.core import config
from src.core.exceptions import (
    CSVProcessingException,
    DynamoDBException,
    RowValidationError,
    S3Exception
)
from src.models.column_schema import ColumnSchema
from src.models.job import IngestionSummary, JobStatus, ProcessingError
from src.repositories.job_repository import JobRepository
from src.services.file_service import FileService
from src.services.row_validator import RowValidator

logger = structlog.get_logger(__name__)


class RowOutcome(str, Enum):
    """What happened to a single data row."""

    PROCESSED = "processed"
    INVALID = "invalid"
    FAULT = "fault"


class IngestionPipeline:
    """Consumes one job's CSV stream, one row at a time."""

    def __init__(
        self,
        job_repository: JobRepository,
        file_service: FileService = None,
        retry_attempts: Optional[int] = None,
        retry_backoff_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.job_repository = job_repository
        self.file_service = file_service or FileService()
        self.retry_attempts = max(
            1, config.settings.store_retry_attempts if retry_attempts is None else retry_attempts
        )
        self.retry_backoff_seconds = (
            config.settings.store_retry_backoff_seconds if retry_backoff_seconds is None else retry_backoff_seconds
        )
        self.sleep = sleep

    def ingest(self, job_id: str, stream: BinaryIO, schema: ColumnSchema) -> IngestionSummary:
        """
        Run the whole ingestion of one job.

        Rows are validated and persisted strictly in file order. Row
        validation failures become processing errors; store faults on a
        single row are retried, then counted as faults without stopping the
        remaining rows. A fault of the stream itself ends the job in FAILED.

        Args:
            job_id: Job to ingest into, expected to be PENDING
            stream: Readable CSV byte stream
            schema: Column schema of the job

        Returns:
            IngestionSummary with per-run counters and the final status

        Raises:
            JobNotFoundException: If the job does not exist
            JobStateException: If the job is not PENDING
            DynamoDBException: If a status transition keeps failing
        """
        log = logger.bind(job_id=job_id)
        summary = IngestionSummary(job_id)

        self._with_retry(
            lambda: self.job_repository.update_job_status(job_id, JobStatus.PROCESSING),
            "mark_processing",
            log
        )
        log.info("ingestion_started", columns=len(schema))

        validator = RowValidator(schema)
        try:
            for row_number, row in self.file_service.iter_rows(stream):
                summary.rows_read += 1
                outcome = self._process_row(job_id, row_number, row, validator, log)
                if outcome is RowOutcome.PROCESSED:
                    summary.processed += 1
                elif outcome is RowOutcome.INVALID:
                    summary.invalid += 1
                else:
                    summary.faults += 1

        except (CSVProcessingException, S3Exception) as e:
            log.error("ingestion_stream_failed", error=e.message, rows_read=summary.rows_read)
            summary.failure_message = e.message
            self._finish(job_id, JobStatus.FAILED, summary, log)
            return summary
        except Exception as e:
            log.exception("ingestion_stream_crashed", rows_read=summary.rows_read)
            summary.failure_message = f"Unexpected error reading CSV stream: {str(e)}"
            self._finish(job_id, JobStatus.FAILED, summary, log)
            return summary

        self._finish(job_id, JobStatus.DONE, summary, log)
        return summary

    def _process_row(
        self,
        job_id: str,
        row_number: int,
        row: List[Any],
        validator: RowValidator,
        log
    ) -> RowOutcome:
        try:
            try:
                record = validator.validate(row)
            except RowValidationError as e:
                error = ProcessingError(column=e.column, row=row_number, message=e.message)
                self._with_retry(
                    lambda: self.job_repository.append_processing_error(job_id, error),
                    "append_processing_error",
                    log
                )
                return RowOutcome.INVALID

            self._with_retry(
                lambda: self.job_repository.append_processed_row(job_id, record),
                "append_processed_row",
                log
            )
            return RowOutcome.PROCESSED

        except Exception:
            log.exception("row_fault", row=row_number)
            return RowOutcome.FAULT

    def _finish(self, job_id: str, status: JobStatus, summary: IngestionSummary, log) -> None:
        self._with_retry(
            lambda: self.job_repository.update_job_status(
                job_id,
                status,
                fault_count=summary.faults,
                failure_message=summary.failure_message
            ),
            "mark_" + status.value.lower(),
            log
        )
        summary.status = status
        log.info("ingestion_finished", **summary.to_dict())

    def _with_retry(self, operation: Callable[[], None], action: str, log) -> None:
        """
        Run a store call, retrying DynamoDB faults with exponential backoff.

        Raises:
            DynamoDBException: If every attempt fails
        """
        retrying = Retrying(
            retry=retry_if_exception_type(DynamoDBException),
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=self.retry_backoff_seconds),
            sleep=self.sleep,
            before_sleep=lambda retry_state: log.warning(
                "store_retry",
                action=action,
                attempt=retry_state.attempt_number,
                delay=retry_state.next_action.sleep,
                error=str(retry_state.outcome.exception())
            ),
            reraise=True
        )
        try:
            retrying(operation)
        except DynamoDBException as e:
            log.error("store_retry_exhausted", action=action, attempts=self.retry_attempts, error=e.message)
            raise
