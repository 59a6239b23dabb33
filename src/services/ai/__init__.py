"""Init file for AI services."""

from .interfaces import ChatPrompt, DesignChatLLM, LLMCompletion
from .llm_client import PydanticAIDesignChatLLM


__all__ = [
    "ChatPrompt",
    "DesignChatLLM",
    "LLMCompletion",
    "PydanticAIDesignChatLLM",
]
