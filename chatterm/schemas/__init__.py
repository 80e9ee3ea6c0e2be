from chatterm.schemas.chat import (
    ConversationRead,
    MessageRead,
    MessageRole,
    SessionState,
)

__all__ = [
    "ConversationRead",
    "MessageRead",
    "MessageRole",
    "SessionState",
]
