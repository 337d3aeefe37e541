from __future__ import annotations

from enum import Enum
from typing import Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"The {field_name} field is required", field=field_name)
    return value.strip()


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"The {field_name} may not be greater than {max_len} characters", field=field_name)
    return value


def require_choice(value, enum_cls: Type[E], field_name: str) -> E:
    """Coerce a raw value into `enum_cls` or fail with a validation error."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"The selected {field_name} is invalid (allowed: {allowed})", field=field_name)


def optional_choice(value, enum_cls: Type[E]) -> Optional[E]:
    """Like `require_choice` but silently drops unknown values (used by list filters)."""
    if value is None or value == "":
        return None
    try:
        return require_choice(value, enum_cls, "filter")
    except ValidationError:
        return None


def require_int(value, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"The {field_name} must be an integer", field=field_name)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"The {field_name} must be an integer", field=field_name)


def require_int_range(value, field_name: str, *, minimum: int, maximum: int) -> int:
    number = require_int(value, field_name)
    if number < minimum or number > maximum:
        raise ValidationError(f"The {field_name} must be between {minimum} and {maximum}", field=field_name)
    return number


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def parse_bool(value, field_name: str) -> bool:
    """Accept the usual form/JSON spellings of a boolean."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower() if value is not None else ""
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValidationError(f"The {field_name} field must be true or false", field=field_name)
