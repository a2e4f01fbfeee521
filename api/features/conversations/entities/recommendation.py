"""Recommendation and next-step entities derived from one assistant turn."""
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from api.shared.entities.base import BaseEntity


class StepPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class StepActionType(str, Enum):
    RESEARCH = "research"
    VISIT = "visit"
    CONTACT = "contact"
    PREPARE = "prepare"


class Recommendation(BaseEntity):
    """A catalog car suggested in an assistant message, scored 0..100."""

    __table_args__ = (
        CheckConstraint("match_score >= 0 AND match_score <= 100", name="ck_recommendation_match_score"),
    )

    conversation_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("conversation.id", ondelete="CASCADE"), nullable=False, index=True
    )
    message_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("message.id", ondelete="CASCADE"), nullable=False, index=True
    )
    car_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("car.id", ondelete="CASCADE"), nullable=False
    )
    match_score: Mapped[int] = mapped_column(Integer, nullable=False)
    reasoning_en: Mapped[Optional[str]] = mapped_column(Text)
    reasoning_zh: Mapped[Optional[str]] = mapped_column(Text)


class NextStep(BaseEntity):
    """Suggested follow-up action attached to an assistant message."""

    conversation_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("conversation.id", ondelete="CASCADE"), nullable=False, index=True
    )
    message_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("message.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title_en: Mapped[str] = mapped_column(String(200), nullable=False)
    title_zh: Mapped[str] = mapped_column(String(200), nullable=False)
    description_en: Mapped[Optional[str]] = mapped_column(Text)
    description_zh: Mapped[Optional[str]] = mapped_column(Text)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default=StepPriority.MEDIUM.value)
    action_type: Mapped[str] = mapped_column(String(20), nullable=False, default=StepActionType.RESEARCH.value)
    url: Mapped[Optional[str]] = mapped_column(String(500))
    step_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSONB)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
