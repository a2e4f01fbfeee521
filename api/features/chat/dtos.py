"""DTOs for the Chat feature (camelCase on the wire)."""
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Literal, Optional
from uuid import UUID

from pydantic import Field, field_validator

from advisor.pipeline.models import (
    BilingualText,
    CarRecord,
    ChatContext,
    NextStepRecord,
    RecommendationRecord,
)
from advisor.pipeline.orchestrator import TurnRequest, TurnResult
from api.features.conversations.dtos import ConversationDTO, MessageDTO
from api.shared.dtos import CamelDTO, PaginationInfo
from core.settings import SETTINGS

MAX_MESSAGE_CHARS = SETTINGS.CHAT.MAX_MESSAGE_CHARS


class ChatRequest(CamelDTO):
    """Inbound chat turn."""

    message: str = Field(min_length=1, max_length=MAX_MESSAGE_CHARS, description="User message")
    conversation_id: Optional[UUID] = Field(default=None, description="Existing conversation to continue")
    user_id: Optional[str] = Field(default=None, max_length=100)
    session_id: Optional[str] = Field(default=None, max_length=100)
    language: Optional[Literal["en", "zh"]] = Field(
        default=None, description="Language for a new conversation"
    )
    context: Optional[ChatContext] = Field(default=None, description="Preferences and viewed car")
    stream: bool = Field(default=False, description="Deliver the reply as Server-Sent Events")

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, value: Any) -> Any:
        # Length limits apply to the stripped text.
        return value.strip() if isinstance(value, str) else value

    def to_turn_request(self) -> TurnRequest:
        return TurnRequest(
            message=self.message,
            conversation_id=str(self.conversation_id) if self.conversation_id else None,
            language=self.language,
            user_id=self.user_id,
            session_id=self.session_id,
            context=self.context,
        )


class BilingualDTO(CamelDTO):
    en: str
    zh: str

    @classmethod
    def from_text(cls, text: BilingualText) -> "BilingualDTO":
        return cls(en=text.en, zh=text.zh)


class CarSummaryDTO(CamelDTO):
    id: str
    make: str
    model: str
    category: str
    fuel_type: Optional[str] = None
    price_min: Optional[Decimal] = None
    price_max: Optional[Decimal] = None
    image_url: Optional[str] = None

    @classmethod
    def from_record(cls, car: CarRecord) -> "CarSummaryDTO":
        return cls.model_validate(car.model_dump())


class ChatRecommendationDTO(CamelDTO):
    id: str
    car_id: str
    match_score: int = Field(ge=0, le=100)
    reasoning: BilingualDTO
    car: Optional[CarSummaryDTO] = None

    @classmethod
    def from_record(cls, record: RecommendationRecord) -> "ChatRecommendationDTO":
        return cls(
            id=record.id,
            car_id=record.car_id,
            match_score=record.match_score,
            reasoning=BilingualDTO.from_text(record.reasoning),
            car=CarSummaryDTO.from_record(record.car) if record.car else None,
        )


class ChatNextStepDTO(CamelDTO):
    id: str
    title: BilingualDTO
    description: BilingualDTO
    priority: str
    action_type: str

    @classmethod
    def from_record(cls, record: NextStepRecord) -> "ChatNextStepDTO":
        return cls(
            id=record.id,
            title=BilingualDTO.from_text(record.title),
            description=BilingualDTO.from_text(record.description),
            priority=record.priority,
            action_type=record.action_type,
        )


class ChatMetadataDTO(CamelDTO):
    model_name: Optional[str] = None
    token_estimate: Optional[int] = None
    error: bool = False
    persisted: bool = True
    degraded: bool = False


class ChatResponse(CamelDTO):
    """Reply to one chat turn."""

    message: str
    conversation_id: str
    message_id: str
    timestamp: datetime
    metadata: ChatMetadataDTO
    recommendations: List[ChatRecommendationDTO] = Field(default_factory=list)
    next_steps: List[ChatNextStepDTO] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: TurnResult) -> "ChatResponse":
        return cls(
            message=result.text,
            conversation_id=result.conversation_id,
            message_id=result.message_id,
            timestamp=result.timestamp,
            metadata=ChatMetadataDTO.model_validate(result.metadata.model_dump()),
            recommendations=[ChatRecommendationDTO.from_record(r) for r in result.recommendations],
            next_steps=[ChatNextStepDTO.from_record(s) for s in result.next_steps],
        )


class ChatConversationDTO(CamelDTO):
    id: str
    title: Optional[str] = None
    summary: Optional[str] = None
    language: str
    session_id: str
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_conversation(cls, conversation: ConversationDTO) -> "ChatConversationDTO":
        return cls.model_validate(conversation.model_dump())


class ChatMessageDTO(CamelDTO):
    id: str
    type: str = Field(description="user or assistant")
    content: str
    metadata: Optional[dict] = None
    created_at: datetime

    @classmethod
    def from_message(cls, message: MessageDTO) -> "ChatMessageDTO":
        return cls(
            id=message.id,
            type=message.role,
            content=message.content,
            metadata=message.metadata,
            created_at=message.created_at,
        )


class ChatHistoryResponse(CamelDTO):
    conversation: ChatConversationDTO
    messages: List[ChatMessageDTO]
    pagination: PaginationInfo
