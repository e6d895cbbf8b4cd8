"""Tests for DataValidator normalization helpers."""
from datetime import date, datetime

import pytest

from chronicle.core.exceptions import ValidationError
from chronicle.core.validators import DataValidator


class TestRequiredFields:
    def test_missing_field_raises(self):
        with pytest.raises(ValidationError, match="'title'"):
            DataValidator.validate_required_fields({"type": "person"}, ["type", "title"])

    def test_blank_string_counts_as_missing(self):
        with pytest.raises(ValidationError):
            DataValidator.validate_required_fields({"name": "   "}, ["name"])

    def test_present_fields_pass(self):
        DataValidator.validate_required_fields({"name": "Barovia"}, ["name"])


class TestNormalizers:
    def test_normalize_string(self):
        assert DataValidator.normalize_string("  Strahd ") == "Strahd"
        assert DataValidator.normalize_string("   ") is None
        assert DataValidator.normalize_string(None) is None

    @pytest.mark.parametrize(
        "value, expected",
        [(True, True), ("yes", True), ("0", False), (1, True), ("off", False)],
    )
    def test_normalize_bool(self, value, expected):
        assert DataValidator.normalize_bool(value) is expected

    def test_normalize_bool_rejects_garbage(self):
        with pytest.raises(ValidationError):
            DataValidator.normalize_bool("maybe")

    def test_normalize_float(self):
        assert DataValidator.normalize_float("1.5") == 1.5
        with pytest.raises(ValidationError):
            DataValidator.normalize_float("wide")

    def test_normalize_date(self):
        assert DataValidator.normalize_date("2024-01-06") == date(2024, 1, 6)
        assert DataValidator.normalize_date(datetime(2024, 1, 6, 9)) == date(2024, 1, 6)
        with pytest.raises(ValidationError):
            DataValidator.normalize_date("06/01/2024")

    def test_validate_choice(self):
        assert DataValidator.validate_choice("a", ["a", "b"], "sort") == "a"
        with pytest.raises(ValidationError, match="Invalid sort"):
            DataValidator.validate_choice("c", ["a", "b"], "sort")


class TestClampLimit:
    @pytest.mark.parametrize(
        "value, expected",
        [(None, 30), (0, 30), (-5, 30), ("abc", 30), (10, 10), ("20", 20), (100, 100), (500, 100)],
    )
    def test_clamp_limit(self, value, expected):
        assert DataValidator.clamp_limit(value) == expected
