"""
DynamoDB Repository for ingestion jobs.

Job records live in the jobs table and stay small: status, schema and
list counters. Processed rows and errors are appended to a separate
entries table, one item per list element, keyed by the element's index
so a page is a single range query.
"""
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError
from src.core import config
from src.core.exceptions import DynamoDBException, JobNotFoundException, JobStateException
from src.models.column_schema import ColumnSchema
from src.models.job import Job, JobStatus, PaginatedResult, ProcessingError
from src.repositories.job_repository import JobRepository

ERROR_PREFIX = "ERROR"
ROW_PREFIX = "ROW"
ERROR_COUNT = "error_count"
PROCESSED_COUNT = "processed_count"


class DynamoJobRepository(JobRepository):
    """Repository for DynamoDB job operations."""

    def __init__(self):
        self.dynamodb = boto3.resource('dynamodb', region_name=config.settings.aws_region)
        self.jobs_table = self.dynamodb.Table(config.settings.jobs_table_name)
        self.entries_table = self.dynamodb.Table(config.settings.job_entries_table_name)
        # (job_id, counter attribute) -> list length, kept for the single writer of a job
        self._counters: Dict[Tuple[str, str], int] = {}

    def create_job(self, schema: ColumnSchema) -> str:
        """
        Create a new job in PENDING status.

        Args:
            schema: Column schema supplied with the upload

        Returns:
            The new job id

        Raises:
            DynamoDBException: If create operation fails
        """
        try:
            job_id = str(uuid.uuid4())
            now = self._now()
            self.jobs_table.put_item(
                Item={
                    'job_id': job_id,
                    'status': JobStatus.PENDING.value,
                    'schema': schema.to_mapping(),
                    ERROR_COUNT: 0,
                    PROCESSED_COUNT: 0,
                    'fault_count': 0,
                    'created_at': now,
                    'updated_at': now
                },
                ConditionExpression=Attr('job_id').not_exists()
            )
            return job_id

        except ClientError as e:
            raise DynamoDBException(f"Failed to create job: {str(e)}") from e
        except Exception as e:
            raise DynamoDBException(f"Unexpected error creating job: {str(e)}") from e

    def get_job(self, job_id: str) -> Optional[Job]:
        """
        Retrieve a job by ID.

        Returns:
            Job object or None if not found

        Raises:
            DynamoDBException: If query fails
        """
        try:
            response = self.jobs_table.get_item(Key={'job_id': job_id}, ConsistentRead=True)

            if 'Item' not in response:
                return None

            return self._item_to_job(response['Item'])

        except ClientError as e:
            raise DynamoDBException(f"Failed to get job: {str(e)}") from e
        except Exception as e:
            raise DynamoDBException(f"Unexpected error getting job: {str(e)}") from e

    def update_job_status(
        self,
        job_id: str,
        status: JobStatus,
        fault_count: Optional[int] = None,
        failure_message: Optional[str] = None
    ) -> None:
        """
        Move a job to a new status.

        The update is conditional on the job currently being in one of the
        status's allowed predecessors, so transitions never go backwards.

        Raises:
            JobNotFoundException: If the job does not exist
            JobStateException: If the transition is not allowed
            DynamoDBException: If update operation fails
        """
        try:
            updates = {'status': status.value, 'updated_at': self._now()}
            if fault_count is not None:
                updates['fault_count'] = fault_count
            if failure_message is not None:
                updates['failure_message'] = failure_message

            condition = Attr('job_id').exists()
            predecessors = status.allowed_predecessors()
            if predecessors:
                condition = condition & Attr('status').is_in([p.value for p in predecessors])

            self.jobs_table.update_item(
                Key={'job_id': job_id},
                UpdateExpression="SET " + ", ".join(f"#{key} = :{key}" for key in updates),
                ExpressionAttributeNames={f"#{key}": key for key in updates},
                ExpressionAttributeValues={f":{key}": value for key, value in updates.items()},
                ConditionExpression=condition
            )

        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException':
                self._raise_transition_error(job_id, status)
            raise DynamoDBException(f"Failed to update job status: {str(e)}") from e
        except Exception as e:
            raise DynamoDBException(f"Unexpected error updating job status: {str(e)}") from e
        finally:
            # no further appends follow a terminal status, whether or not it was stored
            if status.is_terminal:
                self._forget_counters(job_id)

    def append_processed_row(self, job_id: str, record: Dict[str, Any]) -> None:
        """
        Append a validated record to the job's processed data.

        Raises:
            JobNotFoundException: If the job does not exist
            DynamoDBException: If the append fails
        """
        self._append(job_id, ROW_PREFIX, PROCESSED_COUNT, record)

    def append_processing_error(self, job_id: str, error: ProcessingError) -> None:
        """
        Append a row validation error to the job's errors.

        Raises:
            JobNotFoundException: If the job does not exist
            DynamoDBException: If the append fails
        """
        self._append(job_id, ERROR_PREFIX, ERROR_COUNT, error.to_dict())

    def get_errors_page(self, job_id: str, page: int, size: int) -> PaginatedResult[ProcessingError]:
        """
        Read one page of the job's errors.

        A job that does not exist reads as an empty list; callers tell the
        two apart with get_job.

        Raises:
            DynamoDBException: If query fails
        """
        return self._get_page(job_id, ERROR_PREFIX, ERROR_COUNT, page, size, ProcessingError.from_dict)

    def get_processed_page(self, job_id: str, page: int, size: int) -> PaginatedResult[Dict[str, Any]]:
        """
        Read one page of the job's processed rows.

        Raises:
            DynamoDBException: If query fails
        """
        return self._get_page(job_id, ROW_PREFIX, PROCESSED_COUNT, page, size, lambda payload: payload)

    def _append(self, job_id: str, prefix: str, counter: str, payload: Dict[str, Any]) -> None:
        """
        Write the entry at index == current list length, then bump the count.

        Re-running a failed append rewrites the same index, so a retry never
        leaves a gap or a duplicate in the list.
        """
        try:
            sequence = self._current_count(job_id, counter)

            self.entries_table.put_item(Item={
                'PK': self._create_pk(job_id),
                'SK': self._create_sk(prefix, sequence),
                'payload': json.dumps(payload)
            })

            self.jobs_table.update_item(
                Key={'job_id': job_id},
                UpdateExpression="SET #count = :count, #updated_at = :updated_at",
                ExpressionAttributeNames={'#count': counter, '#updated_at': 'updated_at'},
                ExpressionAttributeValues={':count': sequence + 1, ':updated_at': self._now()},
                ConditionExpression=Attr('job_id').exists()
            )

            self._counters[(job_id, counter)] = sequence + 1

        except JobNotFoundException:
            raise
        except ClientError as e:
            raise DynamoDBException(f"Failed to append to job {job_id}: {str(e)}") from e
        except Exception as e:
            raise DynamoDBException(f"Unexpected error appending to job {job_id}: {str(e)}") from e

    def _current_count(self, job_id: str, counter: str) -> int:
        cached = self._counters.get((job_id, counter))
        if cached is not None:
            return cached

        response = self.jobs_table.get_item(
            Key={'job_id': job_id},
            ConsistentRead=True,
            ProjectionExpression='#count',
            ExpressionAttributeNames={'#count': counter}
        )
        if 'Item' not in response:
            raise JobNotFoundException(f"Job '{job_id}' not found")

        count = int(response['Item'].get(counter, 0))
        self._counters[(job_id, counter)] = count
        return count

    def _get_page(
        self,
        job_id: str,
        prefix: str,
        counter: str,
        page: int,
        size: int,
        convert: Callable[[Dict[str, Any]], Any]
    ) -> PaginatedResult:
        try:
            response = self.jobs_table.get_item(
                Key={'job_id': job_id},
                ConsistentRead=True,
                ProjectionExpression='#count',
                ExpressionAttributeNames={'#count': counter}
            )
            total = int(response['Item'].get(counter, 0)) if 'Item' in response else 0

            start = page * size
            end = min(start + size, total)
            data: List[Any] = []

            if start < end:
                query_kwargs = {
                    'KeyConditionExpression': Key('PK').eq(self._create_pk(job_id)) & Key('SK').between(
                        self._create_sk(prefix, start), self._create_sk(prefix, end - 1)
                    ),
                    'ConsistentRead': True
                }
                while True:
                    result = self.entries_table.query(**query_kwargs)
                    data.extend(convert(json.loads(item['payload'])) for item in result.get('Items', []))
                    if 'LastEvaluatedKey' not in result:
                        break
                    query_kwargs['ExclusiveStartKey'] = result['LastEvaluatedKey']

            return PaginatedResult(data=data, total=total, page=page, size=size)

        except ClientError as e:
            raise DynamoDBException(f"Failed to query job entries: {str(e)}") from e
        except Exception as e:
            raise DynamoDBException(f"Unexpected error querying job entries: {str(e)}") from e

    def _raise_transition_error(self, job_id: str, status: JobStatus) -> None:
        job = self.get_job(job_id)
        if job is None:
            raise JobNotFoundException(f"Job '{job_id}' not found")
        raise JobStateException(
            f"Job '{job_id}' cannot move from {job.status.value} to {status.value}"
        )

    def _forget_counters(self, job_id: str) -> None:
        for counter in (ERROR_COUNT, PROCESSED_COUNT):
            self._counters.pop((job_id, counter), None)

    def _create_pk(self, job_id: str) -> str:
        """Create partition key for a job's entries."""
        return f"JOB#{job_id}"

    def _create_sk(self, prefix: str, sequence: int) -> str:
        """Create zero-padded sort key so lexical order matches list order."""
        return f"{prefix}#{sequence:012d}"

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def _item_to_job(self, item: dict) -> Job:
        """Convert DynamoDB item to Job domain model."""
        return Job(
            job_id=item['job_id'],
            status=JobStatus(item['status']),
            schema=ColumnSchema.from_mapping(item['schema']),
            created_at=datetime.fromisoformat(item['created_at']),
            updated_at=datetime.fromisoformat(item['updated_at']),
            error_count=int(item.get(ERROR_COUNT, 0)),
            processed_count=int(item.get(PROCESSED_COUNT, 0)),
            fault_count=int(item.get('fault_count', 0)),
            failure_message=item.get('failure_message')
        )
