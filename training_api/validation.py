"""
Request payload validation helpers.
"""

import re
from typing import Any, Iterable, Mapping

from training_api.errors import ValidationError


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_fields(payload: Mapping[str, Any], names: Iterable[str], message: str) -> None:
    """Raise ValidationError(message) unless every field in *names* is set."""
    if any(is_blank(payload.get(name)) for name in names):
        raise ValidationError(message)


def require_choice(value: Any, choices: Iterable[str], label: str) -> None:
    choices = set(choices)
    if value not in choices:
        raise ValidationError(f"{label} must be one of: {', '.join(sorted(choices))}")


def require_list(value: Any, message: str) -> list:
    if not isinstance(value, list):
        raise ValidationError(message)
    return value


def require_pattern(value: str, pattern: str, message: str) -> None:
    if not isinstance(value, str) or not re.fullmatch(pattern, value):
        raise ValidationError(message)


def require_non_negative_int(value: Any, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{label} must be a non-negative integer")


def payload_of(data: Any) -> Mapping[str, Any]:
    """Normalise a parsed JSON body; anything but an object is rejected."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
