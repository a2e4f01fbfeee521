"""Events emitted by incremental model delivery."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from api.shared.exceptions import ModelError


@dataclass(frozen=True)
class FragmentEvent:
    text: str


@dataclass(frozen=True)
class DoneEvent:
    full_text: str
    fragment_count: int = 0


@dataclass(frozen=True)
class ErrorEvent:
    error: ModelError


StreamEvent = Union[FragmentEvent, DoneEvent, ErrorEvent]
