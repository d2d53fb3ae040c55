"""
Shared test fixtures and utilities.
"""
import boto3
import pytest
from moto import mock_aws
from src.core import config
from src.models.column_schema import ColumnSchema

JOBS_TABLE = "Jobs-test"
ENTRIES_TABLE = "JobEntries-test"
BUCKET = "test-bucket"


@pytest.fixture
def sample_schema():
    """Two-column schema: A -> name (string), B -> age (number)."""
    return ColumnSchema.from_mapping({
        "A": {"name": "name", "type": "string"},
        "B": {"name": "age", "type": "number"}
    })


@pytest.fixture
def setup_test_env(monkeypatch):
    """Point settings at test tables and bucket with fake credentials."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("S3_BUCKET_NAME", BUCKET)
    monkeypatch.setenv("JOBS_TABLE_NAME", JOBS_TABLE)
    monkeypatch.setenv("JOB_ENTRIES_TABLE_NAME", ENTRIES_TABLE)
    monkeypatch.setenv("STORE_RETRY_BACKOFF_SECONDS", "0")
    monkeypatch.setenv("ENVIRONMENT", "test")
    config.settings = config.Settings()
    yield
    monkeypatch.undo()
    config.settings = config.Settings()


@pytest.fixture
def aws_resources(setup_test_env):
    """Mocked S3 bucket and DynamoDB jobs/entries tables."""
    with mock_aws():
        s3 = boto3.client("s3", region_name="us-east-1")
        s3.create_bucket(Bucket=BUCKET)

        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        dynamodb.create_table(
            TableName=JOBS_TABLE,
            KeySchema=[{"AttributeName": "job_id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "job_id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST"
        )
        dynamodb.create_table(
            TableName=ENTRIES_TABLE,
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"}
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"}
            ],
            BillingMode="PAY_PER_REQUEST"
        )

        yield s3, dynamodb
