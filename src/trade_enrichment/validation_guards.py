"""
Validation guard helpers used to keep dataclass __post_init__ logic concise.

Each helper focuses on a single check so model validation composes these
building blocks without additional branching.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Type


def require(condition: bool, error: Exception) -> None:
    """Raise the provided exception when the condition fails."""
    if not condition:
        raise error


def require_instance(value: Any, expected_type: Type[Any], field_name: str) -> None:
    """Ensure a value is an instance of the expected type."""
    require(
        isinstance(value, expected_type),
        TypeError(f"{field_name} must be a {expected_type.__name__} object"),
    )


def require_optional_instance(value: Any, expected_type: Type[Any], field_name: str) -> None:
    """Ensure optional values are either None or of the expected type."""
    if value is None:
        return
    require_instance(value, expected_type, field_name)


def require_non_empty_string(value: Any, field_name: str) -> None:
    """Ensure a string field is present and non-empty."""
    require(isinstance(value, str), TypeError(f"{field_name} must be a string"))
    require(value.strip() != "", ValueError(f"{field_name} cannot be empty"))


def require_date(value: date, field_name: str) -> None:
    require_instance(value, date, field_name)


def require_decimal(value: Decimal, field_name: str) -> None:
    require_instance(value, Decimal, field_name)
    require(value.is_finite(), ValueError(f"{field_name} must be a finite number: {value}"))
