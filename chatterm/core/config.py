import os

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

class Settings(BaseSettings):
    """Application settings."""

    # Application
    PROJECT_NAME: str = "ChatTerm"
    PROJECT_DESCRIPTION: str = "Terminal chat client with persistent conversation history"
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///chat_history.db")
    DB_ECHO: bool = os.getenv("DB_ECHO", "false").lower() == "true"

    # LLM provider
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "gemini")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "")  # empty means the provider default
    LLM_REQUEST_TIMEOUT: float = float(os.getenv("LLM_REQUEST_TIMEOUT", "60"))  # seconds
    LLM_MAX_RETRIES: int = int(os.getenv("LLM_MAX_RETRIES", "0"))

    # Gemini
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")

    # OpenAI API
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")

    # Azure OpenAI
    AZURE_OPENAI_API_KEY: str = os.getenv("AZURE_OPENAI_API_KEY", "")
    AZURE_OPENAI_ENDPOINT: str = os.getenv("AZURE_OPENAI_ENDPOINT", "")
    AZURE_OPENAI_API_VERSION: str = os.getenv("AZURE_OPENAI_API_VERSION", "2024-10-21")

    # Agent persona
    AGENT_NAME: str = os.getenv("AGENT_NAME", "AI Assistant")
    AGENT_ROLE: str = os.getenv("AGENT_ROLE", "Helpful Assistant")
    AGENT_PERSONA: str = os.getenv("AGENT_PERSONA", "Friendly and Professional")

    # Session
    USER_ID_PREFIX: str = os.getenv("USER_ID_PREFIX", "user_")
    DEFAULT_USERNAME: str = os.getenv("DEFAULT_USERNAME", "user")
    SESSION_RESOURCE_ID: str = os.getenv("SESSION_RESOURCE_ID", "tui-session")
    CONVERSATION_LIST_LIMIT: int = int(os.getenv("CONVERSATION_LIST_LIMIT", "10"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING")  # keep the interactive screen clean
    LOG_COLORS: bool = os.getenv("LOG_COLORS", "true").lower() == "true"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

settings = Settings()
