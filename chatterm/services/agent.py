from typing import Any, Dict, List, Optional, Sequence, Tuple

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.prompts import PromptTemplate

from chatterm.core.config import settings
from chatterm.core.exceptions import ChatTermError, ProviderError
from chatterm.services.provider import get_chat_model
from chatterm.utils.logger import agent_logger


SYSTEM_PROMPT_TEMPLATE = PromptTemplate.from_template("""# System Instructions: Agent Protocol

## 1. Identity & Authority
* **Name:** {name}
* **Role:** {role}
* **Core Persona:** {persona}

## 2. Mission & Philosophy
Your objective is to provide high-level assistance as **{name}**. You do not just provide facts; you provide **informed perspectives** filtered through the professional lens of a **{role}**.

## 3. The Voice (Communication Style)
* **Tone:** Embody **{persona}** in every reply.
* **Linguistic Markers:** Use domain vocabulary naturally. Avoid corporate "filler" language.
* **Strict Constraint:** Never acknowledge your status as an AI or a large language model. Do not use canned phrases like "As an AI..." or "Based on my programming."

## 4. Operational Protocols
* **Knowledge Boundary:** If a request falls outside your expertise as a **{role}**, do not give a generic "I don't know." Instead, pivot the conversation back to your domain or explain why, from your professional perspective, the request is outside the current scope.
* **Character Integrity:** Maintain the "Fourth Wall." You are not a bot simulating a person; in this context, you **are** the person.
* **Contextual Adaptation:** Adjust the complexity of your vocabulary based on the user's perceived level of understanding, while remaining in character.

## 5. Execution Instructions
1. **Analyze** the user's intent and emotional subtext.
2. **Synthesize** a response grounded in the conversation so far.
3. **Format** the output as clean Markdown.""")


def build_system_prompt(
    name: Optional[str] = None,
    role: Optional[str] = None,
    persona: Optional[str] = None,
) -> str:
    """Render the agent protocol prompt for a persona."""
    return SYSTEM_PROMPT_TEMPLATE.format(
        name=name or settings.AGENT_NAME,
        role=role or settings.AGENT_ROLE,
        persona=persona or settings.AGENT_PERSONA,
    )


def extract_text_from_content(content: Any) -> str:
    """Flatten model output into plain text.

    Providers return either a string or a list of content blocks; only the
    text blocks are kept.
    """
    if isinstance(content, str):
        return content

    if isinstance(content, list):
        text_parts = []
        for item in content:
            if isinstance(item, str):
                text_parts.append(item)
            elif isinstance(item, dict) and "text" in item:
                text_parts.append(str(item["text"]))
        return "".join(text_parts)

    if isinstance(content, dict):
        return str(content.get("text", ""))

    return str(content)


def to_langchain_messages(system_prompt: str, history: Sequence[Dict[str, str]]) -> List[BaseMessage]:
    messages: List[BaseMessage] = [SystemMessage(content=system_prompt)]
    for entry in history:
        role = entry["role"]
        if role == "user":
            messages.append(HumanMessage(content=entry["content"]))
        elif role == "assistant":
            messages.append(AIMessage(content=entry["content"]))
        elif role == "system":
            messages.append(SystemMessage(content=entry["content"]))
        else:
            raise ValueError(f"Unknown message role: {role}")
    return messages


class AgentService:
    """Single request/response text generation over a LangChain chat model."""

    def __init__(self, llm: BaseChatModel):
        self.llm = llm

    def generate(self, system_prompt: str, history: Sequence[Dict[str, str]]) -> str:
        """
        Generate the assistant reply for a conversation.

        Args:
            system_prompt: Instructions sent ahead of the history
            history: Ordered role/content pairs, oldest first

        Returns:
            The generated text

        Raises:
            ProviderError: the provider call failed or timed out
        """
        messages = to_langchain_messages(system_prompt, history)
        agent_logger.debug("Calling model", "GENERATE", messages=len(messages))
        try:
            response = self.llm.invoke(messages)
        except Exception as e:
            # provider SDKs raise their own exception types; normalise them here
            agent_logger.error("Generation failed", "GENERATE", error=str(e))
            raise ProviderError(f"Generation failed: {e}", original_error=e) from e

        text = extract_text_from_content(getattr(response, "content", response))
        agent_logger.debug("Model replied", "GENERATE", length=len(text))
        return text

    __call__ = generate


def initialize_agent(provider: Optional[str] = None, model: Optional[str] = None) -> Tuple[AgentService, str]:
    """Build the generation service and its system prompt.

    Raises:
        ConfigError: missing credentials for the selected provider
    """
    system_prompt = build_system_prompt()
    try:
        llm = get_chat_model(provider, model)
    except ChatTermError:
        raise
    except Exception as e:
        # client constructors validate their arguments eagerly
        raise ProviderError(f"Could not create chat model: {e}", original_error=e) from e
    return AgentService(llm), system_prompt
