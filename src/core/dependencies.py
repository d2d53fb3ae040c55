"""
Dependency injection container for FastAPI.
Provides singleton-like behavior for services and repositories.
"""
from functools import lru_cache
from src.repositories.s3_repository import S3Repository
from src.repositories.job_repository import JobRepository
from src.repositories.dynamo_job_repository import DynamoJobRepository
from src.services.file_service import FileService
from src.services.ingestion_pipeline import IngestionPipeline
from src.services.ingestion_scheduler import IngestionScheduler
from src.services.job_service import JobService


@lru_cache()
def get_s3_repository() -> S3Repository:
    """Get S3Repository singleton instance."""
    return S3Repository()


@lru_cache()
def get_job_repository() -> JobRepository:
    """Get JobRepository singleton instance."""
    return DynamoJobRepository()


@lru_cache()
def get_file_service() -> FileService:
    """Get FileService singleton instance."""
    return FileService()


@lru_cache()
def get_ingestion_pipeline() -> IngestionPipeline:
    """Get IngestionPipeline singleton instance with injected dependencies."""
    return IngestionPipeline(
        job_repository=get_job_repository(),
        file_service=get_file_service()
    )


@lru_cache()
def get_ingestion_scheduler() -> IngestionScheduler:
    """Get IngestionScheduler singleton instance."""
    return IngestionScheduler(pipeline=get_ingestion_pipeline())


@lru_cache()
def get_job_service() -> JobService:
    """Get JobService singleton instance with injected dependencies."""
    return JobService(
        job_repository=get_job_repository(),
        s3_repository=get_s3_repository(),
        scheduler=get_ingestion_scheduler()
    )
