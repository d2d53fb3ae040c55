"""
Core configuration for the CSV Ingestion API.
Manages environment variables and AWS service settings.
"""
import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # AWS Configuration
    aws_region: str = os.getenv("AWS_REGION", "us-east-1")
    s3_bucket_name: str = os.getenv("S3_BUCKET_NAME", "")
    jobs_table_name: str = os.getenv("JOBS_TABLE_NAME", "")
    job_entries_table_name: str = os.getenv("JOB_ENTRIES_TABLE_NAME", "")

    # API Configuration
    api_title: str = os.getenv("API_TITLE", "CSV Ingestion API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")

    # File Upload Limits
    max_file_size_mb: int = int(os.getenv("MAX_FILE_SIZE_MB", "10"))

    # Pagination Configuration
    pagination_default_size: int = int(os.getenv("PAGINATION_DEFAULT_SIZE", "10"))
    pagination_max_size: int = int(os.getenv("PAGINATION_MAX_SIZE", "1000"))

    # Ingestion
    # "local" runs the pipeline on the in-process worker pool,
    # "lambda" leaves it to the S3-triggered csv_processor function.
    ingestion_mode: str = os.getenv("INGESTION_MODE", "local")
    ingestion_max_workers: int = int(os.getenv("INGESTION_MAX_WORKERS", "4"))
    store_retry_attempts: int = int(os.getenv("STORE_RETRY_ATTEMPTS", "3"))
    store_retry_backoff_seconds: float = float(os.getenv("STORE_RETRY_BACKOFF_SECONDS", "0.2"))
    csv_read_chunk_size: int = int(os.getenv("CSV_READ_CHUNK_SIZE", "65536"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = os.getenv("LOG_JSON", "false").lower() == "true"

    # Environment
    environment: str = os.getenv("ENVIRONMENT", "dev")

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
