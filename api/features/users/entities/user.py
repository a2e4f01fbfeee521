"""User entity."""
from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from api.features.conversations.entities.conversation import Language
from api.shared.entities.base import BaseEntity


class User(BaseEntity):
    """A visitor of the advisor, identified by the browser session that first created it."""

    email: Mapped[Optional[str]] = mapped_column(String(255))
    name: Mapped[Optional[str]] = mapped_column(String(100))
    language: Mapped[str] = mapped_column(
        String(5), nullable=False, default=Language.ZH.value
    )
    session_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
