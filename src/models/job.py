"""
Job domain models.
Represents an ingestion job, its per-row errors and paginated views.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from src.models.column_schema import ColumnSchema

T = TypeVar("T")


class JobStatus(str, Enum):
    """Job lifecycle states."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    DONE = "DONE"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.DONE, JobStatus.FAILED)

    def allowed_predecessors(self) -> List["JobStatus"]:
        """States a job must be in to move to this one."""
        return _PREDECESSORS[self]


_PREDECESSORS = {
    JobStatus.PENDING: [],
    JobStatus.PROCESSING: [JobStatus.PENDING],
    JobStatus.DONE: [JobStatus.PROCESSING],
    JobStatus.FAILED: [JobStatus.PROCESSING],
}


class Job:
    """Domain model for a file ingestion job."""

    def __init__(
        self,
        job_id: str,
        status: JobStatus,
        schema: ColumnSchema,
        created_at: datetime,
        updated_at: Optional[datetime] = None,
        error_count: int = 0,
        processed_count: int = 0,
        fault_count: int = 0,
        failure_message: Optional[str] = None
    ):
        self.job_id = job_id
        self.status = status
        self.schema = schema
        self.created_at = created_at
        self.updated_at = updated_at or created_at
        self.error_count = error_count
        self.processed_count = processed_count
        self.fault_count = fault_count
        self.failure_message = failure_message

    def __repr__(self):
        return f"Job(job_id={self.job_id}, status={self.status.value}, errors={self.error_count})"


class ProcessingError:
    """A validation failure of one data row."""

    def __init__(self, column: str, row: int, message: str):
        self.column = column
        self.row = row
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"column": self.column, "row": self.row, "message": self.message}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProcessingError":
        return cls(column=data["column"], row=int(data["row"]), message=data["message"])

    def __eq__(self, other):
        if not isinstance(other, ProcessingError):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"ProcessingError(column={self.column!r}, row={self.row}, message={self.message!r})"


class PaginatedResult(Generic[T]):
    """One page of an ordered list plus the size of the whole list."""

    def __init__(self, data: List[T], total: int, page: int, size: int):
        self.data = data
        self.total = total
        self.page = page
        self.size = size

    def __eq__(self, other):
        if not isinstance(other, PaginatedResult):
            return NotImplemented
        return (self.data, self.total, self.page, self.size) == (other.data, other.total, other.page, other.size)

    def __repr__(self):
        return f"PaginatedResult(total={self.total}, page={self.page}, size={self.size}, items={len(self.data)})"


class IngestionSummary:
    """Counters collected by one ingestion run."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        self.rows_read = 0
        self.processed = 0
        self.invalid = 0
        self.faults = 0
        self.status: Optional[JobStatus] = None
        self.failure_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "status": self.status.value if self.status else None,
            "rows_read": self.rows_read,
            "processed": self.processed,
            "invalid": self.invalid,
            "faults": self.faults,
            "failure_message": self.failure_message,
        }

    def __repr__(self):
        return (
            f"IngestionSummary(job_id={self.job_id}, rows_read={self.rows_read}, "
            f"processed={self.processed}, invalid={self.invalid}, faults={self.faults})"
        )
