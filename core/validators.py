"""
Shared validation helpers for ContactGraph services.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional

from core.errors import ValidationIssue

HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def validate_required_text(value: str, field: str, max_len: int) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationIssue(f"{field} must be a non-empty string", field=field, error_type="required")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_optional_text(value: Optional[str], field: str, max_len: int) -> None:
    if value is None:
        return
    if not isinstance(value, str):
        raise ValidationIssue(f"{field} must be a string", field=field, error_type="invalid_type")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_limit(value: int, field: str, max_value: int) -> None:
    if value <= 0 or value > max_value:
        raise ValidationIssue(f"{field} must be between 1 and {max_value}", field=field, error_type="out_of_range")


def validate_id(value, field: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationIssue(f"{field} must be an integer", field=field, error_type="invalid_type")
    if value <= 0:
        raise ValidationIssue(f"{field} must be a positive integer", field=field, error_type="invalid_id")


def validate_color(value: Optional[str], field: str) -> None:
    if value is None:
        return
    if not isinstance(value, str) or not HEX_COLOR_RE.match(value):
        raise ValidationIssue(f"{field} must be a #rrggbb color", field=field, error_type="invalid_value")


def validate_age(value, field: str, max_value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationIssue(f"{field} must be an integer", field=field, error_type="invalid_type")
    if value < 0 or value > max_value:
        raise ValidationIssue(f"{field} must be between 0 and {max_value}", field=field, error_type="out_of_range")


def parse_date(value, field: str) -> date:
    """Accept a date, a datetime or an ISO-8601 string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise ValidationIssue(
                f"{field} must be an ISO date (YYYY-MM-DD)",
                field=field,
                error_type="invalid_value",
            ) from exc
    raise ValidationIssue(f"{field} must be a date", field=field, error_type="invalid_type")
