"""
Exception hierarchy for ChatTerm.

Every error raised on purpose by the store, the provider layer or the
session service derives from ChatTermError, so the terminal loop can catch
one type per user action and keep running.
"""

from typing import Optional


class ChatTermError(Exception):
    """Base exception for ChatTerm operations."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class ConfigError(ChatTermError):
    """A required setting or credential is missing or invalid."""
    pass


class StorageError(ChatTermError):
    """The persistence medium is unavailable or a write failed."""
    pass


class StoreClosedError(StorageError):
    """An operation was attempted on a closed store."""

    def __init__(self, message: str = "Store is closed"):
        super().__init__(message)


class ConversationNotFoundError(ChatTermError):
    """A write referenced a conversation that does not exist."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(f"Conversation not found: {conversation_id}")


class ProviderError(ChatTermError):
    """The text-generation call failed (network, quota, malformed response)."""
    pass
