from enum import Enum
from typing import Optional, Union

from langchain_core.language_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import AzureChatOpenAI, ChatOpenAI

from chatterm.core.config import settings
from chatterm.core.exceptions import ConfigError
from chatterm.utils.logger import agent_logger


class Provider(str, Enum):
    """Supported text-generation providers."""
    GEMINI = "gemini"
    OPENAI = "openai"
    AZURE_OPENAI = "azure_openai"


DEFAULT_MODELS = {
    Provider.GEMINI: "gemini-2.5-flash-lite",
    Provider.OPENAI: "gpt-4o-mini",
    Provider.AZURE_OPENAI: "gpt-4o-mini",
}


def _require(value: str, name: str) -> str:
    if not value:
        raise ConfigError(f"{name} is not set")
    return value


def get_chat_model(provider: Union[Provider, str, None] = None, model: Optional[str] = None) -> BaseChatModel:
    """
    Build the chat model for a provider.

    Every model gets the configured request timeout so a hung call fails
    instead of blocking the session.

    Raises:
        ConfigError: unknown provider or missing credentials
    """
    name = provider or settings.LLM_PROVIDER
    try:
        provider = Provider(name)
    except ValueError:
        raise ConfigError(f"Unsupported provider: {name}")

    model = model or settings.LLM_MODEL or DEFAULT_MODELS[provider]
    timeout = settings.LLM_REQUEST_TIMEOUT
    max_retries = settings.LLM_MAX_RETRIES

    if provider is Provider.GEMINI:
        llm = ChatGoogleGenerativeAI(
            api_key=_require(settings.GEMINI_API_KEY, "GEMINI_API_KEY"),
            model=model,
            timeout=timeout,
            max_retries=max_retries,
        )
    elif provider is Provider.OPENAI:
        llm = ChatOpenAI(
            api_key=_require(settings.OPENAI_API_KEY, "OPENAI_API_KEY"),
            model=model,
            timeout=timeout,
            max_retries=max_retries,
        )
    else:
        llm = AzureChatOpenAI(
            api_key=_require(settings.AZURE_OPENAI_API_KEY, "AZURE_OPENAI_API_KEY"),
            azure_endpoint=_require(settings.AZURE_OPENAI_ENDPOINT, "AZURE_OPENAI_ENDPOINT"),
            api_version=settings.AZURE_OPENAI_API_VERSION,
            azure_deployment=model,
            timeout=timeout,
            max_retries=max_retries,
        )

    agent_logger.info("Chat model ready", "PROVIDER", provider=provider.value, model=model, timeout=timeout)
    return llm
