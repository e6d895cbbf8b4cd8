#!/usr/bin/env python3
"""
validators.py
--------------------
Data validation and normalization utilities for Chronicle operations.

Provides type-safe conversion and validation used by the entity
managers and the feed layer.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .exceptions import ValidationError


class DataValidator:
    """Centralized data validation for database operations."""

    @staticmethod
    def validate_required_fields(
        data: Dict[str, Any], required_fields: List[str]
    ) -> None:
        """
        Validate that required fields are present and non-empty.

        Args:
            data: Data dictionary to validate
            required_fields: List of required field names

        Raises:
            ValidationError: If a field is missing or empty
        """
        for field in required_fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"Required field '{field}' missing or empty")

    @staticmethod
    def normalize_string(value: Any) -> Optional[str]:
        """
        Normalize a string value: strip surrounding whitespace.

        Returns:
            Stripped string, or None for None/empty input
        """
        if value is None:
            return None
        normalized = str(value).strip()
        return normalized or None

    @staticmethod
    def normalize_bool(value: Any) -> Optional[bool]:
        """
        Convert various inputs to boolean.

        Raises:
            ValidationError: If conversion fails
        """
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            if value in (0, 1):
                return bool(value)
            raise ValidationError(f"Cannot convert numeric '{value}' to boolean")
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "1", "yes", "on"):
                return True
            if lowered in ("false", "0", "no", "off"):
                return False
        raise ValidationError(f"Cannot convert '{value}' to boolean")

    @staticmethod
    def normalize_float(value: Any) -> Optional[float]:
        """
        Convert a value to float.

        Raises:
            ValidationError: If conversion fails
        """
        if value is None:
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Cannot convert '{value}' to a number")

    @staticmethod
    def normalize_date(value: Any) -> Optional[date]:
        """
        Normalize ISO strings, dates and datetimes to a date.

        Raises:
            ValidationError: If the string is not an ISO date
        """
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                raise ValidationError(f"Invalid date '{value}': expected YYYY-MM-DD")
        raise ValidationError(f"Cannot convert '{value}' to a date")

    @staticmethod
    def validate_choice(value: Any, choices: List[str], field: str) -> str:
        """
        Ensure a value is one of the allowed choices.

        Raises:
            ValidationError: If the value is not allowed
        """
        if value not in choices:
            raise ValidationError(
                f"Invalid {field} '{value}': expected one of {', '.join(choices)}"
            )
        return value

    @staticmethod
    def clamp_limit(value: Any, default: int = 30, maximum: int = 100) -> int:
        """
        Normalize a page size: non-positive or unparseable values fall back
        to the default, large values are capped.
        """
        try:
            limit = int(value)
        except (TypeError, ValueError):
            return default
        if limit <= 0:
            return default
        return min(limit, maximum)
