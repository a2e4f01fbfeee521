"""Message metadata shapes, stored as JSONB and discriminated on ``kind``."""
from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Optional, Union

import structlog
from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from advisor.pipeline.models import ChatContext

logger = structlog.get_logger("advisor")


class UserContextMetadata(BaseModel):
    """Caller context captured with an inbound user message."""

    kind: Literal["user_context"] = "user_context"
    context: Optional[ChatContext] = None


class ModelMetadata(BaseModel):
    """A successful single-shot assistant reply."""

    kind: Literal["model"] = "model"
    model_name: str
    token_estimate: int = Field(ge=0)


class StreamMetadata(BaseModel):
    """A successful incrementally delivered assistant reply."""

    kind: Literal["stream"] = "stream"
    model_name: str
    token_estimate: int = Field(ge=0)
    fragment_count: int = Field(ge=0)


class ErrorMetadata(BaseModel):
    """Fallback reply written after the model call failed."""

    kind: Literal["error"] = "error"
    model_name: str
    error: Literal[True] = True
    reason: str = ""


MessageMetadata = Annotated[
    Union[UserContextMetadata, ModelMetadata, StreamMetadata, ErrorMetadata],
    Field(discriminator="kind"),
]

_metadata_adapter: TypeAdapter[MessageMetadata] = TypeAdapter(MessageMetadata)


def dump_metadata(metadata: Optional[MessageMetadata]) -> Optional[Dict[str, Any]]:
    if metadata is None:
        return None
    return metadata.model_dump(mode="json", exclude_none=True)


def load_metadata(raw: Optional[Dict[str, Any]]) -> Optional[MessageMetadata]:
    """Parse a stored blob; unknown or legacy shapes yield None."""
    if not raw:
        return None
    try:
        return _metadata_adapter.validate_python(raw)
    except PydanticValidationError:
        logger.warning("metadata.unrecognized", keys=sorted(raw))
        return None
