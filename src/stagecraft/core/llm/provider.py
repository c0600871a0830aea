"""LLM client protocol and base types for tool-augmented generation."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class Role(Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A model-requested invocation of a named tool."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Message:
    """A message in an LLM conversation.

    Attributes:
        role: The role (system, user, assistant, tool)
        content: The message content
        tool_calls: Tool calls requested by an assistant message
        tool_call_id: For tool messages, the call this message answers
        name: For tool messages, the tool name
        images: Base64 PNG images sent with a user message
    """

    role: Role
    content: str
    tool_calls: tuple[ToolCall, ...] = ()
    tool_call_id: str | None = None
    name: str | None = None
    images: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Output of one executed tool call."""

    tool_call_id: str
    tool_name: str
    output: Any
    is_error: bool = False


@dataclass(frozen=True, slots=True)
class ToolOutput:
    """Tool return value that also shows the model some images.

    Tool messages are text-only, so the loop sends ``images`` in a user
    message after the step's tool results.
    """

    content: Any
    images: tuple[str, ...] = ()


@dataclass(slots=True)
class Tool:
    """A capability the model may call.

    ``parameters`` is the JSON schema of the arguments object and
    ``execute`` receives the parsed arguments.
    """

    name: str
    description: str
    parameters: dict[str, Any]
    execute: Callable[[dict[str, Any]], Awaitable[Any]]


ToolSet = dict[str, Tool]


@dataclass(frozen=True, slots=True)
class LanguageModelUsage:
    """Token usage for one or more model calls."""

    input_tokens: int = 0
    output_tokens: int = 0
    reasoning_tokens: int = 0
    cached_input_tokens: int = 0

    def __add__(self, other: LanguageModelUsage) -> LanguageModelUsage:
        return LanguageModelUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            reasoning_tokens=self.reasoning_tokens + other.reasoning_tokens,
            cached_input_tokens=self.cached_input_tokens + other.cached_input_tokens,
        )


@dataclass(slots=True)
class ModelTurn:
    """One raw model response, before any tool is executed."""

    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    usage: LanguageModelUsage = field(default_factory=LanguageModelUsage)
    finish_reason: str | None = None


@dataclass(slots=True)
class StepResult:
    """One model-decision-and-act cycle."""

    step_number: int
    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)
    usage: LanguageModelUsage = field(default_factory=LanguageModelUsage)
    finish_reason: str | None = None


StopCondition = Callable[[Sequence[StepResult]], bool]
StepStartCallback = Callable[[int], Awaitable[bool]]
StepFinishCallback = Callable[[StepResult], Awaitable[None]]


@dataclass(slots=True)
class GenerateRequest:
    """Arguments for a tool-augmented generation run.

    Attributes:
        system: System prompt
        messages: Initial conversation
        tools: Tools available to the model, keyed by name
        stop_when: Predicate evaluated once after every step
        on_step_start: Called before each model call; returning True ends the run
        on_step_finish: Called after each step's tools have run
    """

    system: str
    messages: list[Message]
    tools: ToolSet = field(default_factory=dict)
    stop_when: StopCondition | None = None
    on_step_start: StepStartCallback | None = None
    on_step_finish: StepFinishCallback | None = None
    temperature: float | None = 1.0
    tool_choice: str = "auto"
    max_tokens: int | None = None


@dataclass(slots=True)
class GenerateResult:
    """Result of a complete generation run."""

    text: str = ""
    usage: LanguageModelUsage = field(default_factory=LanguageModelUsage)
    steps: list[StepResult] = field(default_factory=list)
    finish_reason: str | None = None

    @classmethod
    def from_steps(cls, steps: list[StepResult]) -> GenerateResult:
        usage = LanguageModelUsage()
        for step in steps:
            usage = usage + step.usage
        last = steps[-1] if steps else None
        return cls(
            text=last.text if last else "",
            usage=usage,
            steps=steps,
            finish_reason=last.finish_reason if last else None,
        )


@runtime_checkable
class LLMClient(Protocol):
    """Protocol for model clients.

    Implementations run the multi-step tool loop: call the model, execute
    requested tools, feed results back, and stop when ``stop_when`` says so
    or the model stops calling tools.
    """

    @property
    def model(self) -> str:
        """The model identifier being used."""
        ...

    def get_language_model(self) -> Any:
        """Return the provider-level model handle."""
        ...

    async def generate(self, request: GenerateRequest) -> GenerateResult:
        """Run the tool loop to completion."""
        ...

    def stream_generate(self, request: GenerateRequest) -> AsyncIterator[StepResult]:
        """Run the tool loop, yielding each step as it finishes."""
        ...
