"""Model client abstraction."""

from stagecraft.core.llm.litellm_provider import LiteLLMClient, create_client
from stagecraft.core.llm.provider import (
    GenerateRequest,
    GenerateResult,
    LanguageModelUsage,
    LLMClient,
    Message,
    ModelTurn,
    Role,
    StepResult,
    Tool,
    ToolCall,
    ToolOutput,
    ToolResult,
    ToolSet,
)
from stagecraft.core.llm.tool_loop import run_tool_loop

__all__ = [
    # Client protocol and implementations
    "LLMClient",
    "LiteLLMClient",
    "create_client",
    # Conversation types
    "Message",
    "Role",
    "Tool",
    "ToolCall",
    "ToolOutput",
    "ToolResult",
    "ToolSet",
    # Generation types
    "GenerateRequest",
    "GenerateResult",
    "LanguageModelUsage",
    "ModelTurn",
    "StepResult",
    "run_tool_loop",
]
