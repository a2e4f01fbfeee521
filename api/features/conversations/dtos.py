"""DTOs for the Conversations feature."""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from advisor.pipeline.metadata import load_metadata
from api.features.conversations.entities.conversation import Conversation, Message
from api.features.conversations.entities.recommendation import NextStep, Recommendation
from api.shared.dtos import BaseDTO


class CreateConversationRequest(BaseDTO):
    """Request to create a conversation."""

    title: Optional[str] = Field(default=None, max_length=200, description="Conversation title")
    summary: Optional[str] = Field(default=None, max_length=500, description="Conversation summary")
    language: Literal["en", "zh"] = Field(default="zh", description="Conversation language")
    user_id: Optional[str] = Field(default=None, max_length=100, description="User identifier")
    session_id: Optional[str] = Field(default=None, max_length=100, description="Anonymous session identifier")


class UpdateConversationRequest(BaseDTO):
    """Partial update of a conversation; omitted fields are left unchanged."""

    title: Optional[str] = Field(default=None, max_length=200)
    summary: Optional[str] = Field(default=None, max_length=500)
    language: Optional[Literal["en", "zh"]] = None


class ConversationDTO(BaseDTO):
    """Conversation DTO."""

    id: str = Field(description="Conversation identifier")
    title: Optional[str] = Field(default=None, description="Conversation title")
    summary: Optional[str] = Field(default=None, description="Conversation summary")
    language: str = Field(description="Conversation language")
    user_id: Optional[str] = Field(default=None, description="User identifier")
    session_id: str = Field(description="Session identifier")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last activity timestamp")

    @classmethod
    def from_entity(cls, entity: Conversation) -> "ConversationDTO":
        return cls.model_validate(entity)


class MessageDTO(BaseDTO):
    """Conversation message DTO."""

    id: str = Field(description="Message identifier")
    conversation_id: str = Field(description="Owning conversation")
    role: str = Field(description="Message role: user or assistant")
    content: str = Field(description="Message content")
    metadata: Optional[dict] = Field(default=None, description="Typed message metadata")
    created_at: datetime = Field(description="Creation timestamp")

    @classmethod
    def from_entity(cls, entity: Message) -> "MessageDTO":
        parsed = load_metadata(entity.message_metadata)
        return cls(
            id=entity.id,
            conversation_id=entity.conversation_id,
            role=entity.role,
            content=entity.content,
            metadata=parsed.model_dump(mode="json", exclude_none=True) if parsed else None,
            created_at=entity.created_at,
        )


class RecommendationDTO(BaseDTO):
    id: str
    conversation_id: str
    message_id: str
    car_id: str
    match_score: int = Field(ge=0, le=100)
    reasoning_en: Optional[str] = None
    reasoning_zh: Optional[str] = None
    car_name: Optional[str] = Field(default=None, description="Make and model of the recommended car")
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: Recommendation, car_name: Optional[str] = None) -> "RecommendationDTO":
        dto = cls.model_validate(entity)
        dto.car_name = car_name
        return dto


class NextStepDTO(BaseDTO):
    id: str
    conversation_id: str
    message_id: str
    title_en: str
    title_zh: str
    description_en: Optional[str] = None
    description_zh: Optional[str] = None
    priority: str
    action_type: str
    url: Optional[str] = None
    is_completed: bool = False
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: NextStep) -> "NextStepDTO":
        return cls.model_validate(entity)


class ConversationListResponse(BaseDTO):
    """List conversations response."""

    items: List[ConversationDTO] = Field(description="Conversations, most recent first")
    total: int = Field(description="Total matching conversations")
    offset: int
    limit: int


class MessagesResponse(BaseDTO):
    """Messages list response."""

    items: List[MessageDTO] = Field(description="Messages in chronological order")
    total: int = Field(description="Total messages in the conversation")


class RecommendationListResponse(BaseDTO):
    items: List[RecommendationDTO]
    total: int


class NextStepListResponse(BaseDTO):
    items: List[NextStepDTO]
    total: int


class SummaryResponse(BaseDTO):
    conversation_id: str
    summary_en: str
    summary_zh: str
    stored: str = Field(description="Summary stored on the conversation, in its language")
