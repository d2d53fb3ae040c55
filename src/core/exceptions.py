"""
Custom exceptions for the CSV Ingestion API.
Provides specific error types for different failure scenarios.
"""


class CSVIngestionException(Exception):
    """Base exception for all application errors."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationException(CSVIngestionException):
    """Raised when request or schema validation fails."""
    pass


class JobNotFoundException(CSVIngestionException):
    """Raised when a job is not found in the job store."""
    pass


class JobStateException(CSVIngestionException):
    """Raised when a job cannot move to the requested state."""
    pass


class S3Exception(CSVIngestionException):
    """Raised when S3 operation fails."""
    pass


class DynamoDBException(CSVIngestionException):
    """Raised when DynamoDB operation fails."""
    pass


class CSVProcessingException(CSVIngestionException):
    """Raised when the CSV stream cannot be read or parsed."""
    pass


class RowValidationError(CSVIngestionException):
    """
    Raised when a single row does not match the column schema.

    The column is the offending source key, or an empty string when the
    failure is not tied to one column.
    """
    def __init__(self, message: str, column: str = ""):
        self.column = column
        super().__init__(message)


class RowWidthMismatch(RowValidationError):
    """Raised when a row has a different number of values than the schema."""
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Row length does not match expected format: expected {expected} columns, got {actual}",
            column=""
        )


class TypeMismatch(RowValidationError):
    """Raised when a value does not have the column's expected type."""
    def __init__(self, column: str, expected_type: str, actual_type: str):
        self.expected_type = expected_type
        self.actual_type = actual_type
        super().__init__(
            f"Row value does not match expected type: expected {expected_type}, got {actual_type}",
            column=column
        )
