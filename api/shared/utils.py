"""Common utility functions."""
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate text to specified length."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(suffix)] + suffix


def is_valid_uuid(uuid_string: Optional[str]) -> bool:
    """Check if string is valid UUID."""
    if not uuid_string:
        return False
    try:
        UUID(uuid_string)
        return True
    except ValueError:
        return False


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def isoformat(value: datetime) -> str:
    """ISO 8601 with a UTC offset, naive datetimes are assumed UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()
