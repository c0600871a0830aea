"""LiteLLM client implementation.

Supports 100+ LLM providers through litellm:
- Anthropic: "claude-sonnet-4-20250514"
- OpenAI: "gpt-4.1", "gpt-4o"
- Google: "gemini/gemini-2.5-flash"
- Local: "ollama/llama3"

See https://docs.litellm.ai/docs/providers for full list.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

import litellm

from stagecraft.core.llm.provider import (
    GenerateRequest,
    GenerateResult,
    LanguageModelUsage,
    Message,
    ModelTurn,
    Role,
    StepResult,
    ToolCall,
    ToolSet,
)
from stagecraft.core.llm.tool_loop import run_tool_loop
from stagecraft.logging import get_logger

log = get_logger("llm")


def _to_wire_message(message: Message) -> dict[str, Any]:
    """Convert a Message to the OpenAI chat format litellm expects."""
    if message.role is Role.TOOL:
        return {
            "role": "tool",
            "tool_call_id": message.tool_call_id,
            "name": message.name,
            "content": message.content,
        }
    wire: dict[str, Any] = {"role": message.role.value, "content": message.content}
    if message.images:
        wire["content"] = [
            {"type": "text", "text": message.content},
            *(
                {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{image}"}}
                for image in message.images
            ),
        ]
    if message.tool_calls:
        wire["content"] = message.content or None
        wire["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
            }
            for call in message.tool_calls
        ]
    return wire


def _to_wire_tools(tools: ToolSet) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
            },
        }
        for tool in tools.values()
    ]


def _parse_arguments(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        log.warning("Discarding malformed tool arguments: %.200s", raw)
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _parse_usage(usage: Any) -> LanguageModelUsage:
    if not usage:
        return LanguageModelUsage()
    completion_details = getattr(usage, "completion_tokens_details", None)
    prompt_details = getattr(usage, "prompt_tokens_details", None)
    return LanguageModelUsage(
        input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
        output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        reasoning_tokens=getattr(completion_details, "reasoning_tokens", 0) or 0,
        cached_input_tokens=getattr(prompt_details, "cached_tokens", 0) or 0,
    )


class LiteLLMClient:
    """Model client using litellm for multi-provider tool calling.

    Usage:
        client = LiteLLMClient("gpt-4.1")
        client = LiteLLMClient("claude-sonnet-4-20250514")
        client = LiteLLMClient("gpt-4", api_base="http://localhost:8000/v1")
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the client.

        Args:
            model: Model identifier (e.g., "gpt-4.1", "claude-sonnet-4-20250514")
            api_key: API key (uses env vars if not provided)
            api_base: Custom API base URL
            **kwargs: Additional litellm options
        """
        self._model = model
        self._api_key = api_key
        self._api_base = api_base
        self._kwargs = kwargs

    @property
    def model(self) -> str:
        return self._model

    def get_language_model(self) -> str:
        return self._model

    def _build_kwargs(
        self,
        system: str,
        messages: list[Message],
        tools: ToolSet,
        request: GenerateRequest,
    ) -> dict[str, Any]:
        """Build kwargs for a litellm call."""
        wire_messages = [{"role": "system", "content": system}] if system else []
        wire_messages.extend(_to_wire_message(m) for m in messages)

        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": wire_messages,
            **self._kwargs,
        }
        if tools:
            kwargs["tools"] = _to_wire_tools(tools)
            kwargs["tool_choice"] = request.tool_choice
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature
        if request.max_tokens:
            kwargs["max_tokens"] = request.max_tokens
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base
        return kwargs

    async def complete(
        self,
        system: str,
        messages: list[Message],
        tools: ToolSet,
        request: GenerateRequest,
    ) -> ModelTurn:
        """Perform a single model call."""
        response = await litellm.acompletion(
            **self._build_kwargs(system, messages, tools, request)
        )

        choice = response.choices[0]
        raw_calls = getattr(choice.message, "tool_calls", None) or []
        tool_calls = [
            ToolCall(
                id=call.id,
                name=call.function.name,
                arguments=_parse_arguments(call.function.arguments),
            )
            for call in raw_calls
        ]

        return ModelTurn(
            text=choice.message.content or "",
            tool_calls=tool_calls,
            usage=_parse_usage(getattr(response, "usage", None)),
            finish_reason=choice.finish_reason,
        )

    def stream_generate(self, request: GenerateRequest) -> AsyncIterator[StepResult]:
        """Run the tool loop, yielding each step as it finishes."""
        return run_tool_loop(self.complete, request)

    async def generate(self, request: GenerateRequest) -> GenerateResult:
        """Run the tool loop to completion."""
        steps = [step async for step in self.stream_generate(request)]
        return GenerateResult.from_steps(steps)


def create_client(model: str = "gpt-4.1", **kwargs: Any) -> LiteLLMClient:
    """Create a model client with sensible defaults."""
    return LiteLLMClient(model, **kwargs)
