"""
Ingestion Scheduler.
Runs ingestion pipelines in the background, one task per job id.
"""
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from contextlib import closing
from functools import partial
from typing import BinaryIO, Callable, Dict, Optional
import structlog
from src.core import config
from src.core.exceptions import JobStateException
from src.models.column_schema import ColumnSchema
from src.models.job import IngestionSummary
from src.services.ingestion_pipeline import IngestionPipeline

logger = structlog.get_logger(__name__)


class IngestionScheduler:
    """Fire-and-forget worker pool keyed by job id."""

    def __init__(self, pipeline: IngestionPipeline, max_workers: Optional[int] = None):
        self.pipeline = pipeline
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or config.settings.ingestion_max_workers,
            thread_name_prefix="ingestion"
        )
        self._active: Dict[str, Future] = {}
        self._lock = threading.Lock()

    def submit(self, job_id: str, open_stream: Callable[[], BinaryIO], schema: ColumnSchema) -> None:
        """
        Queue a job for ingestion and return immediately.

        Args:
            job_id: Job to ingest
            open_stream: Opens the job's CSV byte stream inside the worker
            schema: Column schema of the job

        Raises:
            JobStateException: If the job is already queued or running
        """
        with self._lock:
            running = self._active.get(job_id)
            if running is not None and not running.done():
                raise JobStateException(f"Job '{job_id}' is already being ingested")
            future = self._executor.submit(self._run, job_id, open_stream, schema)
            self._active[job_id] = future

        future.add_done_callback(partial(self._on_done, job_id))
        logger.info("ingestion_queued", job_id=job_id)

    def is_active(self, job_id: str) -> bool:
        with self._lock:
            future = self._active.get(job_id)
        return future is not None and not future.done()

    def join(self, job_id: str, timeout: Optional[float] = None) -> Optional[IngestionSummary]:
        """
        Wait for a job's ingestion to finish.

        Returns:
            The run's summary, or None if the job is not running anymore or the run crashed

        Raises:
            TimeoutError: If the run does not finish within timeout seconds
        """
        with self._lock:
            future = self._active.get(job_id)
        if future is None:
            return None
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            raise TimeoutError(f"Ingestion of job '{job_id}' still running after {timeout}s")
        except Exception:
            return None

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _run(self, job_id: str, open_stream: Callable[[], BinaryIO], schema: ColumnSchema) -> IngestionSummary:
        with closing(open_stream()) as stream:
            return self.pipeline.ingest(job_id, stream, schema)

    def _on_done(self, job_id: str, future: Future) -> None:
        with self._lock:
            if self._active.get(job_id) is future:
                del self._active[job_id]

        error = future.exception()
        if error is not None:
            logger.error("ingestion_crashed", job_id=job_id, error=str(error), error_type=type(error).__name__)
