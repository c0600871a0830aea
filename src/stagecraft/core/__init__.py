"""Core runtime components."""

from stagecraft.core.llm import LiteLLMClient, LLMClient, Message, Role

__all__ = [
    "LLMClient",
    "LiteLLMClient",
    "Message",
    "Role",
]
