"""Domain models exchanged between the orchestrator and its collaborators."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Language = Literal["en", "zh"]
Role = Literal["user", "assistant"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserPreferences(_CamelModel):
    budget: Optional[str] = None
    car_type: Optional[str] = None
    brand: Optional[str] = None
    features: List[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.budget or self.car_type or self.brand or self.features)


class CurrentCar(_CamelModel):
    id: str
    name: str
    brand: str


class ChatContext(_CamelModel):
    """Optional caller context: stated preferences and the car being viewed."""

    user_preferences: Optional[UserPreferences] = None
    current_car: Optional[CurrentCar] = None


class BilingualText(BaseModel):
    en: str = ""
    zh: str = ""

    def get(self, language: str) -> str:
        """Text in ``language``, falling back to English."""
        value = self.zh if language == "zh" else self.en
        return value or self.en or self.zh


class ConversationRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    language: Language = "zh"
    session_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MessageRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    conversation_id: str
    role: Role
    content: str
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: Any) -> "MessageRecord":
        return cls(
            id=str(entity.id),
            conversation_id=str(entity.conversation_id),
            role=entity.role,
            content=entity.content,
            metadata=entity.message_metadata,
            created_at=entity.created_at,
        )


class CarRecord(BaseModel):
    """Slice of a catalog entry the pipeline needs."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    make: str
    model: str
    category: str
    fuel_type: Optional[str] = None
    description_en: Optional[str] = None
    description_zh: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    price_min: Optional[Decimal] = None
    price_max: Optional[Decimal] = None
    image_url: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.make} {self.model}"

    @classmethod
    def from_entity(cls, entity: Any) -> "CarRecord":
        return cls(
            id=str(entity.id),
            make=entity.make,
            model=entity.model,
            category=entity.category,
            fuel_type=entity.fuel_type,
            description_en=entity.description_en,
            description_zh=entity.description_zh,
            features=list(entity.features or []),
            price_min=entity.price_min,
            price_max=entity.price_max,
            image_url=entity.image_url,
        )


class RecommendationRecord(BaseModel):
    id: str
    conversation_id: str
    message_id: str
    car_id: str
    match_score: int = Field(ge=0, le=100)
    reasoning: BilingualText
    car: Optional[CarRecord] = None


class NextStepRecord(BaseModel):
    id: str
    conversation_id: str
    message_id: str
    title: BilingualText
    description: BilingualText
    priority: Literal["high", "medium", "low"] = "medium"
    action_type: Literal["research", "visit", "contact", "prepare"] = "research"
