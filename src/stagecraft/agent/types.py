"""Data types shared by the agent orchestrators and the action executor."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class AgentAction:
    """One abstract action decided by the model.

    Attributes:
        type: Action kind (see ``ActionType``); free-form for custom tools
        payload: Action arguments, e.g. ``{"x": 10, "y": 20}`` for a click
        reasoning: Model reasoning attached to the action
        page_url: URL of the page when the step that produced it started
        timestamp: Completion time in epoch milliseconds
    """

    type: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    reasoning: str | None = None
    page_url: str | None = None
    timestamp: int | None = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, **self.payload}
        if self.reasoning is not None:
            data["reasoning"] = self.reasoning
        if self.page_url is not None:
            data["pageUrl"] = self.page_url
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AgentAction:
        payload = {
            k: v for k, v in data.items() if k not in ("type", "reasoning", "pageUrl", "timestamp")
        }
        return cls(
            type=str(data.get("type", "")),
            payload=payload,
            reasoning=data.get("reasoning"),
            page_url=data.get("pageUrl"),
            timestamp=data.get("timestamp"),
        )


@dataclass(slots=True)
class AgentState:
    """Mutable state of a single run. Never shared between runs."""

    current_page_url: str = ""
    collected_reasoning: list[str] = field(default_factory=list)
    actions: list[AgentAction] = field(default_factory=list)
    final_message: str = ""
    completed: bool = False
    stopped_by_hook: bool = False


@dataclass(slots=True)
class AgentUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    reasoning_tokens: int = 0
    cached_input_tokens: int = 0
    inference_time_ms: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "reasoning_tokens": self.reasoning_tokens,
            "cached_input_tokens": self.cached_input_tokens,
            "inference_time_ms": self.inference_time_ms,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AgentUsage:
        return cls(
            input_tokens=int(data.get("input_tokens") or 0),
            output_tokens=int(data.get("output_tokens") or 0),
            reasoning_tokens=int(data.get("reasoning_tokens") or 0),
            cached_input_tokens=int(data.get("cached_input_tokens") or 0),
            inference_time_ms=int(data.get("inference_time_ms") or 0),
        )


@dataclass(slots=True)
class AgentResult:
    """Outcome of an agent run, local or remote."""

    success: bool
    message: str
    actions: list[AgentAction] = field(default_factory=list)
    completed: bool = False
    metadata: dict[str, Any] | None = None
    usage: AgentUsage | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "actions": [a.to_dict() for a in self.actions],
            "completed": self.completed,
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata
        if self.usage is not None:
            data["usage"] = self.usage.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AgentResult:
        usage = data.get("usage")
        return cls(
            success=bool(data.get("success", False)),
            message=str(data.get("message") or ""),
            actions=[AgentAction.from_dict(a) for a in data.get("actions") or []],
            completed=bool(data.get("completed", False)),
            metadata=data.get("metadata"),
            usage=AgentUsage.from_dict(usage) if usage else None,
        )


@dataclass(slots=True)
class AgentExecuteOptions:
    instruction: str
    max_steps: int | None = None
    highlight_cursor: bool | None = None  # None: orchestrator default

    @classmethod
    def coerce(cls, value: str | AgentExecuteOptions) -> AgentExecuteOptions:
        if isinstance(value, AgentExecuteOptions):
            return value
        return cls(instruction=value)


@dataclass(slots=True)
class ActionExecutionResult:
    success: bool
    error: str | None = None
    screenshot: str | None = None  # base64 PNG captured after the action


@dataclass(frozen=True, slots=True)
class StepStartInfo:
    step_number: int
    max_steps: int
    instruction: str


@dataclass(frozen=True, slots=True)
class StepEndInfo:
    step_number: int
    max_steps: int
    instruction: str
    actions_performed: int
    completed: bool


StepStartHook = Callable[[StepStartInfo], Any | Awaitable[Any]]
StepEndHook = Callable[[StepEndInfo], None | Awaitable[None]]


@dataclass(slots=True)
class AgentHooks:
    """Optional lifecycle callbacks.

    Either hook may be sync or async. A truthy return from
    ``on_step_start`` stops the run before that step's model call.
    """

    on_step_start: StepStartHook | None = None
    on_step_end: StepEndHook | None = None
