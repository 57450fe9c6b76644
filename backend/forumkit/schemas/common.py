"""Helpers shared by the record schemas."""

from datetime import datetime, timezone
from typing import Any, Optional, Union

from forumkit.core.exceptions import ValidationError

RecordId = Union[int, str]


def parse_record_id(value: RecordId, prefix: str) -> int:
    """Accept 7, "7" or "<prefix>_7" and return 7.

    Raises:
        ValidationError: If the value is not a positive integer id
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {prefix} id: {value!r}")
    if isinstance(value, int):
        parsed = value
    else:
        text = str(value).strip()
        if text.startswith(f"{prefix}_"):
            text = text[len(prefix) + 1:]
        try:
            parsed = int(text)
        except ValueError:
            raise ValidationError(f"Invalid {prefix} id: {value!r}") from None

    if parsed <= 0:
        raise ValidationError(f"Invalid {prefix} id: {value!r}")
    return parsed


def reference_id(value: Any) -> Optional[int]:
    """Extract the id from a reference field (expanded dict or bare id)."""
    if isinstance(value, dict):
        value = value.get("Id")
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def reference_label(value: Any, field: str) -> Optional[str]:
    if isinstance(value, dict):
        return value.get(field)
    return None


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
