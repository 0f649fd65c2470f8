from __future__ import annotations

from typing import Any, Optional

from ..core.enums import Role, WorkLocation
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required.")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters.")
    return value


def require_int(value: Any, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is required.")


def parse_work_location(value: Optional[str]) -> WorkLocation:
    try:
        return WorkLocation(value)
    except ValueError:
        raise ValidationError('A valid work location ("Office" or "Home") is required.')


def parse_role(value: Optional[str]) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError("Invalid role.")
