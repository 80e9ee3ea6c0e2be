import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MessageRole(str, Enum):
    """Roles a stored message can carry."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


def decode_metadata(value: Any) -> Any:
    """Turn a stored JSON text blob back into structured data."""
    if value is None or value == "":
        return None
    if isinstance(value, (bytes, str)):
        return json.loads(value)
    return value


def encode_metadata(value: Optional[Dict[str, Any]]) -> Optional[str]:
    """Serialize a metadata document for the storage boundary."""
    if value is None:
        return None
    return json.dumps(value, default=str)


# Conversation Schemas
class ConversationRead(BaseModel):
    """Schema for a stored conversation."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    resource_id: str
    user_id: str
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias="extra_data",
        description="Free-form conversation metadata",
    )
    created_at: datetime
    updated_at: datetime

    @field_validator("metadata", mode="before")
    @classmethod
    def parse_metadata(cls, value: Any) -> Dict[str, Any]:
        return decode_metadata(value) or {}


# Message Schemas
class MessageRead(BaseModel):
    """Schema for a stored message."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    conversation_id: str
    message_id: str
    user_id: str
    role: MessageRole
    content: str
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="extra_data")
    created_at: datetime

    @field_validator("metadata", mode="before")
    @classmethod
    def parse_metadata(cls, value: Any) -> Optional[Dict[str, Any]]:
        return decode_metadata(value)

    def as_history_entry(self) -> Dict[str, str]:
        """Role/content pair handed to the generation capability."""
        return {"role": self.role.value, "content": self.content}


# Session Schemas
class SessionState(BaseModel):
    """In-memory pointer to the conversation currently receiving messages.

    Passed explicitly to every session operation; one value per terminal
    session, so several sessions can share a single service.
    """
    user_id: str
    current_conversation_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.current_conversation_id is not None


def to_history(messages: List[MessageRead]) -> List[Dict[str, str]]:
    return [message.as_history_entry() for message in messages]
