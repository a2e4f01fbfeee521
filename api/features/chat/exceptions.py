"""Exceptions for the Chat feature."""
from typing import Any, Dict, Optional

from api.shared.exceptions import ValidationError


class ChatValidationError(ValidationError):
    """Raised when a chat request is malformed beyond what the DTO checks."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.error_code = "CHAT_VALIDATION_ERROR"
