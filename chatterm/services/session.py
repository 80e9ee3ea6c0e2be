"""
Session service.

Translates user actions (new, list, load, history, send) into store calls
plus one generation call per turn. All mutable session data lives in the
SessionState passed to each method; the service only holds collaborators.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from chatterm.core.config import settings
from chatterm.schemas.chat import ConversationRead, MessageRead, MessageRole, SessionState, to_history
from chatterm.services.chat import ChatStore
from chatterm.utils.logger import session_logger

# generate(system_prompt, history) -> text
Generator = Callable[[str, Sequence[Dict[str, str]]], str]


class SessionService:
    """Stateless driver for terminal chat sessions."""

    def __init__(
        self,
        store: ChatStore,
        generate: Generator,
        system_prompt: str,
        resource_id: Optional[str] = None,
    ):
        self.store = store
        self.generate = generate
        self.system_prompt = system_prompt
        self.resource_id = resource_id or settings.SESSION_RESOURCE_ID

    def new_state(self, user_id: str) -> SessionState:
        return SessionState(user_id=user_id)

    def start_new_conversation(self, state: SessionState) -> str:
        """Create a conversation and make it the current one."""
        conversation_id = self.store.create_conversation(
            state.user_id,
            self.resource_id,
            {"source": "terminal", "started_at": datetime.now(timezone.utc).isoformat()},
        )
        state.current_conversation_id = conversation_id
        session_logger.info("New conversation", "NEW", conversation_id=conversation_id)
        return conversation_id

    def load_conversation(self, state: SessionState, conversation_id: str) -> Optional[ConversationRead]:
        """Switch to an existing conversation; None (state untouched) if it does not exist."""
        conversation_id = conversation_id.strip()
        conversation = self.store.get_conversation(conversation_id)
        if conversation is None:
            session_logger.warning("Conversation not found", "LOAD", conversation_id=conversation_id)
            return None

        state.current_conversation_id = conversation.id
        session_logger.info("Conversation loaded", "LOAD", conversation_id=conversation.id)
        return conversation

    def list_conversations(self, state: SessionState, limit: Optional[int] = None) -> List[ConversationRead]:
        if limit is None:
            limit = settings.CONVERSATION_LIST_LIMIT
        return self.store.list_conversations(state.user_id, limit)

    def message_count(self, conversation_id: str) -> int:
        return self.store.count_messages(conversation_id)

    def get_history(self, state: SessionState) -> List[MessageRead]:
        if not state.is_active:
            return []
        return self.store.get_conversation_messages(state.current_conversation_id)

    def send_message(self, state: SessionState, text: str) -> Optional[str]:
        """
        Run one chat turn and return the assistant reply.

        Returns None without touching the store when no conversation is
        active. If generation fails the ProviderError propagates; the user
        message stays persisted.
        """
        if not state.is_active:
            session_logger.warning("No active conversation, message not sent", "SEND")
            return None

        conversation_id = state.current_conversation_id
        self.store.add_message(conversation_id, state.user_id, MessageRole.USER, text)

        # Get conversation history for context
        history = to_history(self.store.get_conversation_messages(conversation_id))
        reply = self.generate(self.system_prompt, history)

        # no separate agent identity; the reply is recorded under the same user id
        self.store.add_message(conversation_id, state.user_id, MessageRole.ASSISTANT, reply)
        session_logger.debug("Turn complete", "SEND", conversation_id=conversation_id, history=len(history))
        return reply

    def close(self) -> None:
        """Release the underlying store."""
        self.store.close()
        session_logger.debug("Session service closed", "CLOSE")
