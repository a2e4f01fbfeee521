"""Exceptions for the Conversations feature."""
from api.shared.exceptions import NotFoundError


class ConversationNotFoundError(NotFoundError):
    """Raised when a conversation does not exist."""

    def __init__(self, conversation_id: str):
        super().__init__("Conversation", str(conversation_id))
        self.error_code = "CONVERSATION_NOT_FOUND"
