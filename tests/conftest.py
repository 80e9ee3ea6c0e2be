import pytest
from unittest.mock import MagicMock

from chatterm.schemas.chat import SessionState
from chatterm.services.chat import ChatStore
from chatterm.services.session import SessionService


@pytest.fixture
def test_db_url(tmp_path):
    """Database URL for a throwaway SQLite file."""
    return f"sqlite:///{tmp_path / 'test_chat_history.db'}"


@pytest.fixture
def store(test_db_url):
    """An initialized ChatStore, closed after the test."""
    chat_store = ChatStore(test_db_url)
    chat_store.initialize()
    yield chat_store
    chat_store.close()


@pytest.fixture
def fake_generate():
    """Stands in for the text-generation capability."""
    return MagicMock(return_value="Hello from the agent")


@pytest.fixture
def session_service(store, fake_generate):
    return SessionService(store, fake_generate, "You are a test assistant.")


@pytest.fixture
def state():
    return SessionState(user_id="user_alice")
