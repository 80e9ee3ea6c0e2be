"""
Unit tests for SessionService.

The store is a real SQLite-backed ChatStore; the generation capability is a
MagicMock so no provider is contacted.
"""

import pytest
from unittest.mock import MagicMock

from chatterm.core.exceptions import ProviderError, StorageError
from chatterm.schemas.chat import MessageRole, SessionState
from chatterm.services.session import SessionService


class TestSessionState:

    def test_initial_state_is_inactive(self, session_service):
        state = session_service.new_state("user_alice")

        assert state.user_id == "user_alice"
        assert state.current_conversation_id is None
        assert state.is_active is False


class TestStartNewConversation:

    def test_sets_current_conversation(self, session_service, state, store):
        conversation_id = session_service.start_new_conversation(state)

        assert state.current_conversation_id == conversation_id
        assert state.is_active

        conversation = store.get_conversation(conversation_id)
        assert conversation.user_id == "user_alice"
        assert conversation.resource_id == "tui-session"
        assert conversation.metadata["source"] == "terminal"
        assert "started_at" in conversation.metadata

    def test_custom_resource_id(self, store, fake_generate, state):
        service = SessionService(store, fake_generate, "prompt", resource_id="bench")

        conversation_id = service.start_new_conversation(state)

        assert store.get_conversation(conversation_id).resource_id == "bench"

    def test_store_failure_keeps_previous_conversation(self, session_service, state):
        previous = session_service.start_new_conversation(state)
        session_service.store = MagicMock()
        session_service.store.create_conversation.side_effect = StorageError("disk full")

        with pytest.raises(StorageError):
            session_service.start_new_conversation(state)

        assert state.current_conversation_id == previous


class TestLoadConversation:

    def test_load_existing(self, session_service, state, store):
        conversation_id = store.create_conversation("user_alice")

        conversation = session_service.load_conversation(state, conversation_id)

        assert conversation.id == conversation_id
        assert state.current_conversation_id == conversation_id

    def test_load_strips_whitespace(self, session_service, state, store):
        conversation_id = store.create_conversation("user_alice")

        session_service.load_conversation(state, f"  {conversation_id}\n")

        assert state.current_conversation_id == conversation_id

    def test_load_missing_leaves_state_unchanged(self, session_service, state):
        """
        Negative Test: loading an unknown id.

        The current pointer must not move.
        """
        current = session_service.start_new_conversation(state)

        result = session_service.load_conversation(state, "chat_does_not_exist")

        assert result is None
        assert state.current_conversation_id == current

    def test_load_missing_from_empty_state(self, session_service, state):
        assert session_service.load_conversation(state, "nope") is None
        assert state.is_active is False


class TestSendMessage:

    def test_send_persists_both_turns(self, session_service, state, store, fake_generate):
        conversation_id = session_service.start_new_conversation(state)

        reply = session_service.send_message(state, "hi")

        assert reply == "Hello from the agent"
        messages = store.get_conversation_messages(conversation_id)
        assert [(m.role, m.content) for m in messages] == [
            (MessageRole.USER, "hi"),
            (MessageRole.ASSISTANT, "Hello from the agent"),
        ]
        assert all(m.user_id == "user_alice" for m in messages)

    def test_send_passes_system_prompt_and_full_history(self, session_service, state, fake_generate):
        session_service.start_new_conversation(state)
        fake_generate.side_effect = ["first reply", "second reply"]

        session_service.send_message(state, "one")
        session_service.send_message(state, "two")

        system_prompt, history = fake_generate.call_args.args
        assert system_prompt == "You are a test assistant."
        assert history == [
            {"role": "user", "content": "one"},
            {"role": "assistant", "content": "first reply"},
            {"role": "user", "content": "two"},
        ]

    def test_send_without_conversation_is_noop(self, session_service, state, store, fake_generate):
        reply = session_service.send_message(state, "anyone there?")

        assert reply is None
        fake_generate.assert_not_called()
        assert store.list_conversations("user_alice") == []

    def test_provider_error_keeps_user_message(self, session_service, state, store, fake_generate):
        """
        Negative Test: generation fails mid-turn.

        The error reaches the caller, the user message stays stored and no
        assistant message is written.
        """
        conversation_id = session_service.start_new_conversation(state)
        fake_generate.side_effect = ProviderError("quota exceeded")

        with pytest.raises(ProviderError):
            session_service.send_message(state, "hello?")

        messages = store.get_conversation_messages(conversation_id)
        assert [(m.role, m.content) for m in messages] == [(MessageRole.USER, "hello?")]
        assert state.current_conversation_id == conversation_id

    def test_separate_states_share_one_service(self, session_service, store):
        alice = SessionState(user_id="alice")
        bob = SessionState(user_id="bob")
        alice_conversation = session_service.start_new_conversation(alice)
        bob_conversation = session_service.start_new_conversation(bob)

        session_service.send_message(alice, "from alice")
        session_service.send_message(bob, "from bob")

        assert [m.content for m in store.get_conversation_messages(alice_conversation)][0] == "from alice"
        assert [m.content for m in store.get_conversation_messages(bob_conversation)][0] == "from bob"


class TestHistoryAndListing:

    def test_history_empty_without_conversation(self, session_service, state):
        assert session_service.get_history(state) == []

    def test_history_of_current_conversation(self, session_service, state):
        session_service.start_new_conversation(state)
        session_service.send_message(state, "hi")

        history = session_service.get_history(state)

        assert [m.content for m in history] == ["hi", "Hello from the agent"]

    def test_list_defaults_to_ten(self, session_service, state, store):
        for _ in range(12):
            store.create_conversation("user_alice")

        assert len(session_service.list_conversations(state)) == 10
        assert len(session_service.list_conversations(state, limit=3)) == 3

    def test_list_only_own_conversations(self, session_service, state, store):
        store.create_conversation("user_bob")
        own = session_service.start_new_conversation(state)

        assert [c.id for c in session_service.list_conversations(state)] == [own]


class TestClose:

    def test_close_releases_store(self, session_service, store):
        session_service.close()

        assert store.closed

    def test_close_uses_store_close(self, fake_generate):
        fake_store = MagicMock()
        service = SessionService(fake_store, fake_generate, "prompt")

        service.close()

        fake_store.close.assert_called_once_with()
