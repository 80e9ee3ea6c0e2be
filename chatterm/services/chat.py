"""
Conversation store.

ChatStore owns the two persistent relations (conversations and messages)
and every read and write against them. It has no knowledge of sessions or
of the generation capability.
"""

import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError
from sqlalchemy import delete, desc, func, literal_column, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatterm.core.exceptions import ConversationNotFoundError, StorageError, StoreClosedError
from chatterm.db.base_class import Base
from chatterm.db.session import build_engine, build_session_factory
from chatterm.models.conversation import Conversation
from chatterm.models.message import Message
from chatterm.schemas.chat import ConversationRead, MessageRead, MessageRole, encode_metadata
from chatterm.utils.logger import db_logger

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

ReadModel = TypeVar("ReadModel", bound=BaseModel)


def format_timestamp(value: datetime) -> str:
    """Render a datetime as fixed-width UTC text, the stored timestamp format."""
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Parse stored timestamp text, including millisecond-precision rows."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class ChatStore:
    """Data-access layer for conversations and their messages."""

    def __init__(self, db_url: Optional[str] = None, engine: Optional[Engine] = None):
        self._owns_engine = engine is None
        if engine is None:
            try:
                engine = build_engine(db_url)
            except SQLAlchemyError as e:
                db_logger.error("Failed to create engine", "INIT", error=str(e))
                raise StorageError(f"Invalid database URL: {e}", original_error=e) from e
        self.engine = engine
        self._session_factory = build_session_factory(self.engine)
        self._closed = False
        self._clock_lock = threading.Lock()
        self._last_timestamp: Optional[datetime] = None

    def __enter__(self) -> "ChatStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    # ---------------------------------------------------------------- helpers

    def _now(self) -> str:
        """Strictly increasing UTC timestamp for this store instance."""
        now = datetime.now(timezone.utc)
        with self._clock_lock:
            if self._last_timestamp is not None and now <= self._last_timestamp:
                now = self._last_timestamp + timedelta(microseconds=1)
            self._last_timestamp = now
        return format_timestamp(now)

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError()

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        """Run one unit of work; commit on success, roll back on any error."""
        self._ensure_open()
        db = self._session_factory()
        try:
            with db.begin():
                yield db
        except SQLAlchemyError as e:
            db_logger.error(f"Database error while {operation}", "STORE", error=str(e))
            raise StorageError(f"Database error while {operation}", original_error=e) from e
        finally:
            db.close()

    def _read(self, schema: Type[ReadModel], row: Any) -> ReadModel:
        """Convert an ORM row to its read model; malformed rows become StorageError."""
        try:
            return schema.model_validate(row)
        except ValidationError as e:
            db_logger.error(f"Malformed {schema.__name__} row", "STORE", error=str(e))
            raise StorageError(f"Malformed {schema.__name__} row in database", original_error=e) from e

    def _message_order(self) -> List[Any]:
        order = [Message.created_at.asc()]
        if self.engine.dialect.name == "sqlite":
            # insertion order breaks ties between writers with colliding clocks
            order.append(literal_column("memory_messages.rowid").asc())
        return order

    # ------------------------------------------------------------- operations

    def initialize(self) -> None:
        """Create both tables if they do not exist yet."""
        self._ensure_open()
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            db_logger.error("Failed to initialize schema", "INIT", error=str(e))
            raise StorageError("Failed to initialize schema", original_error=e) from e
        db_logger.info("Schema ready", "INIT", url=self.engine.url.render_as_string(hide_password=True))

    def create_conversation(
        self,
        user_id: str,
        resource_id: str = "default",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Create a new conversation and return its id."""
        conversation_id = f"chat_{uuid.uuid4()}"
        now = self._now()

        with self._transaction("creating conversation") as db:
            db.add(Conversation(
                id=conversation_id,
                resource_id=resource_id,
                user_id=user_id,
                extra_data=encode_metadata(metadata or {}),
                created_at=now,
                updated_at=now,
            ))

        db_logger.debug("Conversation created", "STORE", conversation_id=conversation_id, user_id=user_id)
        return conversation_id

    def add_message(
        self,
        conversation_id: str,
        user_id: str,
        role: Union[MessageRole, str],
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Append a message to a conversation and return the new message id.

        The insert and the conversation's ``updated_at`` bump happen in one
        transaction. Raises ConversationNotFoundError, without writing
        anything, when the conversation does not exist.
        """
        role = MessageRole(role)
        message_id = f"msg_{uuid.uuid4()}"
        now = self._now()

        with self._transaction("adding message") as db:
            conversation = db.get(Conversation, conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(conversation_id)

            db.add(Message(
                conversation_id=conversation_id,
                message_id=message_id,
                user_id=user_id,
                role=role.value,
                content=content,
                extra_data=encode_metadata(metadata),
                created_at=now,
            ))

            # Update conversation's updated_at timestamp, never backwards
            if parse_timestamp(conversation.updated_at) < parse_timestamp(now):
                conversation.updated_at = now

        db_logger.debug("Message added", "STORE", conversation_id=conversation_id, role=role.value)
        return message_id

    def get_conversation_messages(self, conversation_id: str) -> List[MessageRead]:
        """All messages of a conversation, oldest first. Empty if none or unknown."""
        with self._transaction("reading messages") as db:
            stmt = (
                select(Message)
                .where(Message.conversation_id == conversation_id)
                .order_by(*self._message_order())
            )
            messages = db.execute(stmt).scalars().all()
            return [self._read(MessageRead, message) for message in messages]

    def count_messages(self, conversation_id: str) -> int:
        with self._transaction("counting messages") as db:
            stmt = select(func.count()).select_from(Message).where(Message.conversation_id == conversation_id)
            return db.execute(stmt).scalar_one()

    def get_conversation(self, conversation_id: str) -> Optional[ConversationRead]:
        """Get a conversation by id, or None if it does not exist."""
        with self._transaction("reading conversation") as db:
            conversation = db.get(Conversation, conversation_id)
            if conversation is None:
                return None
            return self._read(ConversationRead, conversation)

    def list_conversations(self, user_id: str, limit: int = 20) -> List[ConversationRead]:
        """The user's conversations, most recently updated first."""
        if limit < 1:
            return []
        with self._transaction("listing conversations") as db:
            stmt = (
                select(Conversation)
                .where(Conversation.user_id == user_id)
                .order_by(desc(Conversation.updated_at))
                .limit(limit)
            )
            conversations = db.execute(stmt).scalars().all()
            return [self._read(ConversationRead, conversation) for conversation in conversations]

    def delete_conversation(self, conversation_id: str) -> bool:
        """
        Delete a conversation together with its messages.

        Messages go first, then the conversation, inside one transaction.
        Returns True if a conversation row was removed; unknown ids are not
        an error.
        """
        with self._transaction("deleting conversation") as db:
            removed = db.execute(delete(Message).where(Message.conversation_id == conversation_id))
            result = db.execute(delete(Conversation).where(Conversation.id == conversation_id))
            deleted = result.rowcount > 0

        db_logger.debug(
            "Conversation deleted", "STORE",
            conversation_id=conversation_id, found=deleted, messages=removed.rowcount,
        )
        return deleted

    def close(self) -> None:
        """Release the underlying engine. Later calls raise StoreClosedError."""
        if self._closed:
            return
        self._closed = True
        if self._owns_engine:
            self.engine.dispose()
        db_logger.debug("Store closed", "STORE")
