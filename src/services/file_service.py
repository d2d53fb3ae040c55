"""
File Service for CSV processing.
Streams CSV content row by row and casts raw cells to scalar values.
"""
import codecs
import csv
import math
import re
from typing import Any, BinaryIO, Iterator, List, Optional, Tuple
from src.core import config
from src.core.exceptions import CSVProcessingException, ValidationException

_INTEGER = re.compile(r"[+-]?(0|[1-9][0-9]*)")
_DECIMAL = re.compile(r"[+-]?(([0-9]+\.[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?|[0-9]+[eE][+-]?[0-9]+)")
_BOOLEANS = {"true": True, "false": False}


class FileService:
    """Service for file processing operations."""

    def __init__(self, chunk_size: Optional[int] = None):
        self.chunk_size = chunk_size or config.settings.csv_read_chunk_size

    def iter_rows(self, stream: BinaryIO) -> Iterator[Tuple[int, List[Any]]]:
        """
        Parse a CSV byte stream lazily.

        The first row is the header and is skipped. Rows of any width are
        yielded; width checks belong to the row validator.

        Args:
            stream: Readable binary stream with UTF-8 CSV content

        Yields:
            (row_number, values) with row_number starting at 2

        Raises:
            CSVProcessingException: If the stream cannot be decoded or parsed
        """
        reader = csv.reader(self._iter_lines(stream), strict=True)
        try:
            if next(reader, None) is None:
                return

            for row_number, raw_row in enumerate(reader, start=2):
                # a blank line is a row with a single empty cell
                yield row_number, [self.cast_value(value) for value in raw_row or [""]]

        except UnicodeDecodeError as e:
            raise CSVProcessingException("File must be a valid UTF-8 encoded CSV") from e
        except csv.Error as e:
            raise CSVProcessingException(f"Malformed CSV near line {reader.line_num}: {str(e)}") from e
        except OSError as e:
            raise CSVProcessingException(f"Failed to read CSV stream: {str(e)}") from e

    def validate_upload(self, filename: Optional[str], size: int) -> None:
        """
        Validate an uploaded file before it is stored.

        Args:
            filename: Original filename
            size: File size in bytes

        Raises:
            ValidationException: If the file is not a non-empty CSV within the size limit
        """
        if not filename or not filename.lower().endswith('.csv'):
            raise ValidationException("Only CSV files are allowed")

        if size == 0:
            raise ValidationException("CSV file is empty")

        max_size_bytes = config.settings.max_file_size_mb * 1024 * 1024
        if size > max_size_bytes:
            raise ValidationException(
                f"File size ({size / (1024 * 1024):.2f}MB) exceeds maximum allowed size of "
                f"{config.settings.max_file_size_mb}MB"
            )

    @staticmethod
    def cast_value(value: str) -> Any:
        """
        Convert a raw cell into a scalar.

        Integer literals (no leading zeros) become int, decimal and exponent
        literals become float, true/false become bool. Anything else,
        including empty cells and numbers too large to represent, stays a
        string.
        """
        if _INTEGER.fullmatch(value):
            try:
                return int(value)
            except ValueError:
                # beyond the interpreter's integer string length limit
                return value
        if _DECIMAL.fullmatch(value):
            number = float(value)
            # literals beyond float range would round to inf
            return number if math.isfinite(number) else value
        return _BOOLEANS.get(value.lower(), value)

    def _iter_lines(self, stream: BinaryIO) -> Iterator[str]:
        """Decode the stream incrementally into lines that keep their newline."""
        decoder = codecs.getincrementaldecoder("utf-8-sig")()
        pending = ""
        while True:
            chunk = stream.read(self.chunk_size)
            if not chunk:
                break
            pending += decoder.decode(chunk)
            *lines, pending = pending.split("\n")
            for line in lines:
                yield line + "\n"

        pending += decoder.decode(b"", final=True)
        if pending:
            yield pending
