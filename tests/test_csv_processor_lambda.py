import json
import pytest
from lambda_functions.csv_processor import handler, _extract_job_id
from src.models.job import JobStatus
from src.repositories.dynamo_job_repository import DynamoJobRepository


def _s3_event(key, bucket="test-bucket"):
    return {
        "Records": [{
            "s3": {
                "bucket": {"name": bucket},
                "object": {"key": key}
            }
        }]
    }


@pytest.fixture
def uploaded_job(aws_resources, sample_schema):
    """A PENDING job whose CSV already sits in the bucket."""
    s3, _ = aws_resources
    job_id = DynamoJobRepository().create_job(sample_schema)
    key = f"uploads/{job_id}/data.csv"
    s3.put_object(Bucket="test-bucket", Key=key, Body=b"A,B\nAlice,30\nBob,thirty\n")
    return job_id, key


class TestCsvProcessorLambda:
    def test_extract_job_id_success(self):
        assert _extract_job_id("uploads/abc123def456/test.csv") == "abc123def456"

    def test_extract_job_id_no_match(self):
        assert _extract_job_id("invalid/path/test.csv") is None
        assert _extract_job_id("uploads/test.csv") is None

    def test_handler_ingests_uploaded_file(self, uploaded_job):
        job_id, key = uploaded_job

        result = handler(_s3_event(key), None)

        assert result["statusCode"] == 200
        body = json.loads(result["body"])
        assert body["jobs"][0]["job_id"] == job_id
        assert body["jobs"][0]["status"] == "DONE"
        assert (body["jobs"][0]["processed"], body["jobs"][0]["invalid"]) == (1, 1)

        repo = DynamoJobRepository()
        job = repo.get_job(job_id)
        assert job.status == JobStatus.DONE
        assert repo.get_processed_page(job_id, 0, 10).data == [{"name": "Alice", "age": 30}]
        assert repo.get_errors_page(job_id, 0, 10).data[0].row == 3

    def test_handler_url_encoded_key(self, aws_resources, sample_schema):
        s3, _ = aws_resources
        job_id = DynamoJobRepository().create_job(sample_schema)
        s3.put_object(Bucket="test-bucket", Key=f"uploads/{job_id}/my data.csv", Body=b"A,B\n")

        result = handler(_s3_event(f"uploads/{job_id}/my+data.csv"), None)

        assert result["statusCode"] == 200

    def test_handler_redelivered_event_conflicts(self, uploaded_job):
        _, key = uploaded_job
        handler(_s3_event(key), None)

        result = handler(_s3_event(key), None)

        assert result["statusCode"] == 409

    def test_handler_continues_after_failed_record(self, aws_resources, uploaded_job, sample_schema):
        s3, _ = aws_resources
        done_job_id, done_key = uploaded_job
        handler(_s3_event(done_key), None)

        fresh_job_id = DynamoJobRepository().create_job(sample_schema)
        fresh_key = f"uploads/{fresh_job_id}/data.csv"
        s3.put_object(Bucket="test-bucket", Key=fresh_key, Body=b"A,B\nCarol,40\n")
        event = {"Records": _s3_event(done_key)["Records"] + _s3_event(fresh_key)["Records"]}

        result = handler(event, None)

        assert result["statusCode"] == 207
        body = json.loads(result["body"])
        assert [job["job_id"] for job in body["jobs"]] == [fresh_job_id]
        assert body["failures"][0]["job_id"] == done_job_id
        assert body["failures"][0]["status_code"] == 409
        assert DynamoJobRepository().get_job(fresh_job_id).status == JobStatus.DONE

    def test_handler_all_records_failed(self, aws_resources):
        event = {"Records": _s3_event("invalid/key.csv")["Records"] + _s3_event("uploads/missing/data.csv")["Records"]}

        result = handler(event, None)

        assert result["statusCode"] == 400
        body = json.loads(result["body"])
        assert [f["status_code"] for f in body["failures"]] == [400, 404]
        assert body["jobs"] == []

    def test_handler_invalid_key(self, aws_resources):
        result = handler(_s3_event("invalid/key.csv"), None)
        assert result["statusCode"] == 400

    def test_handler_unknown_job(self, aws_resources):
        result = handler(_s3_event("uploads/nonexistent-id/data.csv"), None)
        assert result["statusCode"] == 404

    def test_handler_missing_object_fails_job(self, aws_resources, sample_schema):
        job_id = DynamoJobRepository().create_job(sample_schema)

        result = handler(_s3_event(f"uploads/{job_id}/data.csv"), None)

        assert result["statusCode"] == 200
        job = DynamoJobRepository().get_job(job_id)
        assert job.status == JobStatus.FAILED
        assert "Failed to read file from S3" in job.failure_message
