"""
Lambda function to ingest CSV files uploaded to S3.
Triggered by S3 ObjectCreated events when INGESTION_MODE is "lambda".
"""
import json
import re
from typing import Optional
from urllib.parse import unquote_plus
import structlog
from src.core import config
from src.core.exceptions import CSVIngestionException, JobStateException
from src.core.logging import configure_logging
from src.repositories.dynamo_job_repository import DynamoJobRepository
from src.repositories.s3_repository import S3Repository
from src.services.ingestion_pipeline import IngestionPipeline

logger = structlog.get_logger(__name__)

_UPLOAD_KEY = re.compile(r'^uploads/([^/]+)/[^/]+$')


def handler(event, context):
    """
    Lambda handler for S3 event processing.

    Every record of the event is handled; a failing record does not stop
    the ones after it.

    Args:
        event: S3 event containing bucket and object information
        context: Lambda context object

    Returns:
        dict: Status code and body with per-job summaries and failures.
        200 when every record was ingested, 207 when only some were, and
        the first failure's code when none were.
    """
    configure_logging(config.settings.log_level, json_output=config.settings.log_json)

    job_repository = DynamoJobRepository()
    s3_repository = S3Repository()
    pipeline = IngestionPipeline(job_repository=job_repository)

    summaries = []
    failures = []
    for record in event.get('Records', []):
        bucket = record['s3']['bucket']['name']
        s3_key = unquote_plus(record['s3']['object']['key'])
        job_id = _extract_job_id(s3_key)

        log = logger.bind(bucket=bucket, s3_key=s3_key, job_id=job_id)

        if not job_id:
            log.warning("unrecognized_upload_key")
            failures.append(_failure(s3_key, job_id, 400, 'Validation Error', f"Unrecognized upload key '{s3_key}'"))
            continue

        try:
            job = job_repository.get_job(job_id)
            if job is None:
                log.warning("job_not_found")
                failures.append(_failure(s3_key, job_id, 404, 'Not Found', f"Job '{job_id}' not found"))
                continue

            with s3_repository.open_stream(s3_key, bucket_name=bucket) as stream:
                summary = pipeline.ingest(job_id, stream, job.schema)
            summaries.append(summary.to_dict())

        except JobStateException as e:
            # S3 may deliver the same event more than once
            log.warning("job_already_ingested", error=e.message)
            failures.append(_failure(s3_key, job_id, 409, 'Conflict', e.message))

        except CSVIngestionException as e:
            log.error("ingestion_failed", error=e.message)
            failures.append(_failure(s3_key, job_id, 500, 'Ingestion Error', e.message))

    if not failures:
        status_code = 200
    elif summaries:
        status_code = 207
    else:
        status_code = failures[0]['status_code']

    return _response(status_code, {
        'message': f'Successfully ingested {len(summaries)} file(s), {len(failures)} failed',
        'jobs': summaries,
        'failures': failures
    })


def _extract_job_id(s3_key: str) -> Optional[str]:
    """
    Extract job_id from S3 key.
    Expected format: uploads/job_id/filename.csv

    Args:
        s3_key: S3 object key

    Returns:
        job_id or None if the key does not match
    """
    match = _UPLOAD_KEY.match(s3_key)
    return match.group(1) if match else None


def _failure(s3_key: str, job_id: Optional[str], status_code: int, error: str, message: str) -> dict:
    return {
        's3_key': s3_key,
        'job_id': job_id,
        'status_code': status_code,
        'error': error,
        'message': message
    }


def _response(status_code: int, body: dict) -> dict:
    return {'statusCode': status_code, 'body': json.dumps(body)}
