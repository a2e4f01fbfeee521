"""History windowing: bound the prior messages fed to the model."""
from __future__ import annotations

from typing import Sequence, TypeVar

from api.shared.exceptions import ValidationError

M = TypeVar("M")

DEFAULT_HISTORY_WINDOW = 20


def window_messages(messages: Sequence[M], limit: int = DEFAULT_HISTORY_WINDOW) -> list[M]:
    """Return the most recent ``limit`` messages in their original (chronological) order.

    ``messages`` must already be ordered oldest first. Nothing is reordered and
    nothing is dropped from the middle: the result is always a suffix.
    """
    if limit < 0:
        raise ValidationError(
            "History window must not be negative", details={"limit": limit}
        )
    if limit == 0:
        return []
    return list(messages[-limit:])
