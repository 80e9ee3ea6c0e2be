"""Database models."""

# Import all models here to ensure they're recognized by SQLAlchemy
from chatterm.models.conversation import Conversation
from chatterm.models.message import Message

__all__ = [
    "Conversation",
    "Message",
]
