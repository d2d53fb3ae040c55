"""
Unit tests for RowValidator.
"""
import pytest
from src.core.exceptions import RowValidationError, RowWidthMismatch, TypeMismatch
from src.models.column_schema import ColumnSchema
from src.services.row_validator import RowValidator


class TestRowValidator:
    """Test suite for RowValidator."""

    @pytest.fixture
    def validator(self, sample_schema):
        return RowValidator(sample_schema)

    def test_valid_row_maps_target_names(self, validator):
        record = validator.validate(["Alice", 30])
        assert record == {"name": "Alice", "age": 30}

    def test_values_are_not_coerced(self, validator):
        record = validator.validate(["Alice", 30.25])
        assert record["age"] == 30.25
        assert isinstance(record["age"], float)

    def test_short_row_is_width_mismatch(self, validator):
        with pytest.raises(RowWidthMismatch) as exc_info:
            validator.validate(["Alice"])
        assert exc_info.value.column == ""
        assert "expected 2 columns, got 1" in exc_info.value.message

    def test_long_row_is_width_mismatch(self, validator):
        with pytest.raises(RowWidthMismatch) as exc_info:
            validator.validate(["Alice", 30, "extra"])
        assert exc_info.value.column == ""

    def test_width_checked_before_types(self, validator):
        with pytest.raises(RowWidthMismatch):
            validator.validate([1, 2, 3])

    def test_numeric_string_is_not_a_number(self, validator):
        with pytest.raises(TypeMismatch) as exc_info:
            validator.validate(["Bob", "30"])
        assert exc_info.value.column == "B"
        assert "expected number, got string" in exc_info.value.message

    def test_first_mismatching_column_reported(self, validator):
        with pytest.raises(TypeMismatch) as exc_info:
            validator.validate([1, "thirty"])
        assert exc_info.value.column == "A"

    def test_bool_is_not_a_number(self, validator):
        with pytest.raises(TypeMismatch):
            validator.validate(["Alice", True])

    def test_boolean_column(self):
        schema = ColumnSchema.from_mapping({
            "flag": {"name": "active", "type": "boolean"},
            "id": {"name": "id", "type": "number"}
        })
        validator = RowValidator(schema)

        assert validator.validate([True, 7]) == {"active": True, "id": 7}
        with pytest.raises(TypeMismatch) as exc_info:
            validator.validate(["yes", 7])
        assert exc_info.value.column == "flag"

    def test_positions_follow_sorted_source_keys(self):
        schema = ColumnSchema.from_mapping({
            "z": {"name": "last", "type": "number"},
            "a": {"name": "first", "type": "string"}
        })
        validator = RowValidator(schema)

        assert validator.validate(["x", 1]) == {"first": "x", "last": 1}

    def test_errors_are_row_validation_errors(self, validator):
        for row in (["Alice"], ["Alice", "30"]):
            with pytest.raises(RowValidationError):
                validator.validate(row)
