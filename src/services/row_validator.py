"""
Row validation against a column schema.
"""
from typing import Any, Dict, Sequence

from src.core.exceptions import RowWidthMismatch, TypeMismatch
from src.models.column_schema import ColumnSchema, ColumnType


class RowValidator:
    """Validates parsed rows of one job against its column schema."""

    def __init__(self, schema: ColumnSchema):
        # Positional order is fixed once per job and reused for every row
        self.columns = list(schema)

    def validate(self, row: Sequence[Any]) -> Dict[str, Any]:
        """
        Zip a row with the schema columns and check every value's type.

        Args:
            row: Parsed values in file order

        Returns:
            Record mapping each target name to its unchanged value

        Raises:
            RowWidthMismatch: If the row and schema sizes differ
            TypeMismatch: If a value does not have its column's type
        """
        if len(row) != len(self.columns):
            raise RowWidthMismatch(expected=len(self.columns), actual=len(row))

        record = {}
        for value, column in zip(row, self.columns):
            if not column.expected_type.matches(value):
                raise TypeMismatch(
                    column=column.source_key,
                    expected_type=column.expected_type.value,
                    actual_type=ColumnType.name_of(value)
                )
            record[column.target_name] = value
        return record
