"""
S3 Repository for file storage operations.
Stores uploaded CSV files and streams them back for ingestion.
"""
from datetime import datetime, timezone
from typing import BinaryIO, Optional
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from src.core import config
from src.core.exceptions import S3Exception


class S3ObjectStream:
    """
    Read-only byte stream over an S3 object.

    The object is requested on the first read, so opening the stream never
    fails; S3 errors surface while reading, like any other stream fault.
    """

    def __init__(self, s3_client, bucket_name: str, s3_key: str):
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        self.s3_key = s3_key
        self._body = None
        self.closed = False

    def read(self, size: int = -1) -> bytes:
        if self.closed:
            raise S3Exception(f"Stream for s3://{self.bucket_name}/{self.s3_key} is closed")
        try:
            if self._body is None:
                response = self.s3_client.get_object(Bucket=self.bucket_name, Key=self.s3_key)
                self._body = response['Body']
            return self._body.read(size if size is not None and size >= 0 else None)
        except (ClientError, BotoCoreError) as e:
            raise S3Exception(f"Failed to read file from S3: {str(e)}") from e

    def close(self) -> None:
        if self._body is not None:
            self._body.close()
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


class S3Repository:
    """Repository for S3 file operations."""

    def __init__(self):
        self.s3_client = boto3.client('s3', region_name=config.settings.aws_region)
        self.bucket_name = config.settings.s3_bucket_name

    def upload_file(self, file: BinaryIO, s3_key: str) -> dict:
        """
        Upload a file to S3.

        Args:
            file: File object to upload
            s3_key: Object key, uploads/{job_id}/{filename}

        Returns:
            dict: Upload metadata including s3_key and location

        Raises:
            S3Exception: If upload fails
        """
        try:
            self.s3_client.upload_fileobj(
                file,
                self.bucket_name,
                s3_key,
                ExtraArgs={'ContentType': 'text/csv'}
            )

            return {
                's3_key': s3_key,
                's3_location': f"s3://{self.bucket_name}/{s3_key}",
                'bucket': self.bucket_name,
                'upload_timestamp': datetime.now(timezone.utc).isoformat()
            }

        except ClientError as e:
            raise S3Exception(f"Failed to upload file to S3: {str(e)}") from e
        except Exception as e:
            raise S3Exception(f"Unexpected error during S3 upload: {str(e)}") from e

    def open_stream(self, s3_key: str, bucket_name: Optional[str] = None) -> S3ObjectStream:
        """
        Open a lazy byte stream over an uploaded file.

        Args:
            s3_key: S3 object key
            bucket_name: Bucket override, defaults to the configured bucket

        Returns:
            S3ObjectStream reading the object content
        """
        return S3ObjectStream(self.s3_client, bucket_name or self.bucket_name, s3_key)

    @staticmethod
    def build_upload_key(job_id: str, filename: str) -> str:
        """Key layout shared by the upload API and the S3-triggered processor."""
        return f"uploads/{job_id}/{filename}"
