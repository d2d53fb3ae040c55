"""
Column schema domain model.
Describes the expected shape of every data row of an uploaded CSV file.
"""
import json
from enum import Enum
from typing import Any, Dict, Iterator, List

from src.core.exceptions import ValidationException


class ColumnType(str, Enum):
    """Scalar types a column may declare."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"

    def matches(self, value: Any) -> bool:
        """Check that a parsed value has exactly this type, without coercion."""
        if self is ColumnType.BOOLEAN:
            return isinstance(value, bool)
        if self is ColumnType.NUMBER:
            # bool is an int subclass and never counts as a number
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        return isinstance(value, str)

    @staticmethod
    def name_of(value: Any) -> str:
        """Type name of a parsed value, in schema vocabulary."""
        for column_type in (ColumnType.BOOLEAN, ColumnType.NUMBER, ColumnType.STRING):
            if column_type.matches(value):
                return column_type.value
        return type(value).__name__


class ColumnSpec:
    """One schema entry: source column key, target field name and type."""

    def __init__(self, source_key: str, target_name: str, expected_type: ColumnType):
        self.source_key = source_key
        self.target_name = target_name
        self.expected_type = expected_type

    def __eq__(self, other):
        if not isinstance(other, ColumnSpec):
            return NotImplemented
        return (
            self.source_key == other.source_key
            and self.target_name == other.target_name
            and self.expected_type == other.expected_type
        )

    def __repr__(self):
        return (
            f"ColumnSpec(source_key={self.source_key}, target_name={self.target_name}, "
            f"expected_type={self.expected_type.value})"
        )


class ColumnSchema:
    """
    Ordered set of column specs.

    Columns are sorted by source key so the positional order used to zip
    row values does not depend on the order the caller declared them in.
    """

    def __init__(self, columns: List[ColumnSpec]):
        if not columns:
            raise ValidationException("Expected format must declare at least one column")

        target_names = [column.target_name for column in columns]
        duplicates = sorted({name for name in target_names if target_names.count(name) > 1})
        if duplicates:
            raise ValidationException(f"Duplicate target names in expected format: {', '.join(duplicates)}")

        self.columns = sorted(columns, key=lambda column: column.source_key)

    @classmethod
    def from_mapping(cls, mapping: Dict[str, Any]) -> "ColumnSchema":
        """
        Build a schema from its wire form.

        Args:
            mapping: {source_key: {"name": target_name, "type": "string|number|boolean"}}

        Returns:
            ColumnSchema

        Raises:
            ValidationException: If the mapping is malformed or names an unknown type
        """
        if not isinstance(mapping, dict):
            raise ValidationException("The expected format must be a JSON object")

        columns = []
        for source_key, column_format in mapping.items():
            if not isinstance(column_format, dict):
                raise ValidationException(f"Column '{source_key}' must be an object with 'name' and 'type'")

            target_name = column_format.get("name")
            if not isinstance(target_name, str) or not target_name.strip():
                raise ValidationException(f"Column '{source_key}' must declare a non-empty 'name'")

            type_tag = column_format.get("type")
            try:
                expected_type = ColumnType(type_tag)
            except ValueError:
                allowed = ", ".join(column_type.value for column_type in ColumnType)
                raise ValidationException(
                    f"Column '{source_key}' has unknown type '{type_tag}' (allowed: {allowed})"
                )

            columns.append(ColumnSpec(source_key, target_name.strip(), expected_type))

        return cls(columns)

    @classmethod
    def from_json(cls, text: str) -> "ColumnSchema":
        """Parse the JSON wire form sent by upload clients."""
        try:
            mapping = json.loads(text)
        except (TypeError, ValueError) as e:
            raise ValidationException("The expected format must be a valid JSON object") from e
        return cls.from_mapping(mapping)

    def to_mapping(self) -> Dict[str, Dict[str, str]]:
        """Wire form of the schema, also used for persistence."""
        return {
            column.source_key: {"name": column.target_name, "type": column.expected_type.value}
            for column in self.columns
        }

    @property
    def target_names(self) -> List[str]:
        return [column.target_name for column in self.columns]

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self) -> Iterator[ColumnSpec]:
        return iter(self.columns)

    def __eq__(self, other):
        if not isinstance(other, ColumnSchema):
            return NotImplemented
        return self.columns == other.columns

    def __repr__(self):
        return f"ColumnSchema(columns={self.columns})"
