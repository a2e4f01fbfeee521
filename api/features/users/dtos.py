"""DTOs for the Users feature."""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from api.features.users.entities.user import User
from api.shared.dtos import BaseDTO

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CreateUserRequest(BaseDTO):
    """Register a visitor; an already known session returns the existing user."""

    email: Optional[str] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    language: Literal["en", "zh"] = Field(default="zh")
    session_id: str = Field(min_length=1, max_length=100)


class UserDTO(BaseDTO):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    language: str
    session_id: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: User) -> "UserDTO":
        return cls.model_validate(entity)


class UserListResponse(BaseDTO):
    items: List[UserDTO] = Field(description="Users, newest first")
    total: int
    offset: int
    limit: int
    has_more: bool
