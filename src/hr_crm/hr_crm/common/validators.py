from __future__ import annotations

import re
from enum import Enum
from typing import Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^[0-9+\-\s()]{10,15}$")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} cannot exceed {max_len} characters")
    return value


def require_length_between(value: Optional[str], field_name: str, min_len: int, max_len: int) -> str:
    value = require_non_empty(value, field_name)
    if not (min_len <= len(value) <= max_len):
        raise ValidationError(f"{field_name} must be between {min_len} and {max_len} characters")
    return value


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and bool(_EMAIL_RE.match(value.strip()))


def require_email(value: Optional[str], field_name: str = "Email") -> str:
    value = require_non_empty(value, field_name)
    if not is_valid_email(value):
        raise ValidationError(f"Invalid {field_name.lower()} format")
    return value.lower()


def is_valid_phone(value: Optional[str]) -> bool:
    return bool(value) and bool(_PHONE_RE.match(value.strip()))


def require_phone(value: Optional[str], field_name: str = "Phone") -> str:
    value = require_non_empty(value, field_name)
    if not is_valid_phone(value):
        raise ValidationError(f"{field_name} must be 10-15 digits")
    return value


def optional_str(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_choice(enum_cls: Type[E], value, field_name: str, *, default: Optional[E] = None) -> E:
    """Parse a raw value into ``enum_cls`` or raise a ValidationError listing the allowed values."""
    if value is None or value == "":
        if default is not None:
            return default
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field_name} value. Must be one of: {allowed}")


def parse_int(value, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid")


def optional_int(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return parse_int(value, field_name)
