import pytest
from unittest.mock import MagicMock, patch

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from chatterm.core.exceptions import ConfigError, ProviderError
from chatterm.services import agent as agent_module
from chatterm.services.agent import (
    AgentService,
    build_system_prompt,
    extract_text_from_content,
    initialize_agent,
    to_langchain_messages,
)


class DummyLLMResponse:
    def __init__(self, content):
        self.content = content


@pytest.fixture
def mock_llm():
    llm = MagicMock()
    llm.invoke.return_value = DummyLLMResponse("Protein is essential for muscle growth.")
    return llm


def test_build_system_prompt_uses_persona():
    prompt = build_system_prompt("Chef Bot", "Head Chef", "Warm and witty")

    assert "**Name:** Chef Bot" in prompt
    assert "**Role:** Head Chef" in prompt
    assert "Embody **Warm and witty**" in prompt


def test_build_system_prompt_defaults():
    prompt = build_system_prompt()

    assert "AI Assistant" in prompt
    assert "Helpful Assistant" in prompt
    assert "Friendly and Professional" in prompt


def test_to_langchain_messages_maps_roles():
    messages = to_langchain_messages("system text", [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
        {"role": "system", "content": "note"},
    ])

    assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage, SystemMessage]
    assert messages[0].content == "system text"
    assert messages[2].content == "hello"


def test_to_langchain_messages_rejects_unknown_role():
    with pytest.raises(ValueError):
        to_langchain_messages("system", [{"role": "tool", "content": "?"}])


def test_generate_response_basic(mock_llm):
    service = AgentService(mock_llm)

    response = service.generate("Be helpful.", [{"role": "user", "content": "What are the benefits of protein?"}])

    assert response == "Protein is essential for muscle growth."
    sent = mock_llm.invoke.call_args.args[0]
    assert isinstance(sent[0], SystemMessage)
    assert sent[-1].content == "What are the benefits of protein?"


def test_agent_service_is_callable(mock_llm):
    service = AgentService(mock_llm)

    assert service("Be helpful.", []) == "Protein is essential for muscle growth."


def test_generate_flattens_content_blocks(mock_llm):
    mock_llm.invoke.return_value = DummyLLMResponse([
        {"type": "text", "text": "Hello "},
        {"type": "tool_use", "id": "x"},
        "world",
    ])

    assert AgentService(mock_llm).generate("s", []) == "Hello world"


@pytest.mark.parametrize("content, expected", [
    ("plain", "plain"),
    ([{"type": "text", "text": "a"}, {"type": "text", "text": "b"}], "ab"),
    ({"text": "dict text"}, "dict text"),
    ({"type": "tool_use"}, ""),
    (42, "42"),
])
def test_extract_text_from_content(content, expected):
    assert extract_text_from_content(content) == expected

# ===== NEGATIVE TESTS =====
# These tests verify that the system properly handles error conditions

def test_generate_wraps_provider_failure(mock_llm):
    """
    Negative Test: provider exceptions surface as ProviderError.

    Timeouts and network failures from the SDK must not leak raw.
    """
    mock_llm.invoke.side_effect = TimeoutError("request timed out")

    with pytest.raises(ProviderError) as exc_info:
        AgentService(mock_llm).generate("s", [{"role": "user", "content": "hi"}])

    assert isinstance(exc_info.value.original_error, TimeoutError)


def test_initialize_agent_returns_service_and_prompt():
    fake_llm = MagicMock()
    with patch.object(agent_module, "get_chat_model", return_value=fake_llm) as mock_get:
        service, prompt = initialize_agent("openai", "gpt-4o-mini")

    mock_get.assert_called_once_with("openai", "gpt-4o-mini")
    assert service.llm is fake_llm
    assert "Agent Protocol" in prompt


def test_initialize_agent_propagates_config_error():
    with patch.object(agent_module, "get_chat_model", side_effect=ConfigError("GEMINI_API_KEY is not set")):
        with pytest.raises(ConfigError):
            initialize_agent("gemini")


def test_initialize_agent_wraps_client_construction_failure():
    with patch.object(agent_module, "get_chat_model", side_effect=RuntimeError("bad endpoint")):
        with pytest.raises(ProviderError):
            initialize_agent("azure_openai")
