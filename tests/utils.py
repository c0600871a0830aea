"""Shared test utilities for stagecraft tests."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterable
from typing import Any
from unittest.mock import Mock

import httpx

from stagecraft.core.llm import (
    GenerateRequest,
    GenerateResult,
    LanguageModelUsage,
    Message,
    ModelTurn,
    StepResult,
    ToolCall,
    run_tool_loop,
)
from stagecraft.logging import LogLine


class FakePage:
    """In-memory Page that records every primitive call."""

    def __init__(
        self,
        url: str = "https://example.com",
        click_xpath: str | None = "/html/body/button",
        focused_xpath: str | None = "/html/body/input",
        drag_xpaths: tuple[str, str] | None = ("/html/body/div[1]", "/html/body/div[2]"),
        viewport: tuple[int, int] = (1288, 711),
    ) -> None:
        self.current_url = url
        self.viewport = viewport
        self.click_xpath = click_xpath
        self.focused_xpath = focused_xpath
        self.drag_xpaths = drag_xpaths
        self.calls: list[tuple[str, tuple, dict]] = []
        self.fail_on: set[str] = set()

    def _record(self, name: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((name, args, kwargs))
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    def names(self) -> list[str]:
        return [name for name, _, _ in self.calls]

    def url(self) -> str:
        return self.current_url

    async def click(self, x, y, *, button="left", click_count=1, return_xpath=False):
        self._record("click", x, y, button=button, click_count=click_count)
        return self.click_xpath if return_xpath else None

    async def type(self, text):
        self._record("type", text)

    async def key_press(self, key):
        self._record("key_press", key)

    async def scroll(self, x, y, delta_x, delta_y):
        self._record("scroll", x, y, delta_x, delta_y)

    async def drag_and_drop(self, from_x, from_y, to_x, to_y, *, steps=10, delay=0, return_xpath=False):
        self._record("drag_and_drop", from_x, from_y, to_x, to_y, steps=steps, delay=delay)
        return self.drag_xpaths if return_xpath else None

    async def goto(self, url, *, wait_until="load"):
        self._record("goto", url, wait_until=wait_until)
        self.current_url = url

    async def go_back(self):
        self._record("go_back")

    async def go_forward(self):
        self._record("go_forward")

    async def screenshot(self, *, full_page=False):
        self._record("screenshot", full_page=full_page)
        return b"\x89PNG"

    async def viewport_size(self):
        if "viewport_size" in self.fail_on:
            raise RuntimeError("viewport_size failed")
        return self.viewport

    async def enable_cursor_overlay(self):
        self._record("enable_cursor_overlay")

    async def active_element_xpath(self):
        return self.focused_xpath


class FakeBrowserContext:
    def __init__(self, page: FakePage) -> None:
        self.page = page

    async def active_page(self) -> FakePage:
        return self.page


class LineCollector:
    """Log sink that keeps every LogLine."""

    def __init__(self) -> None:
        self.lines: list[LogLine] = []

    def __call__(self, line: LogLine) -> None:
        self.lines.append(line)

    def messages(self) -> list[str]:
        return [line.message for line in self.lines]


def tool_turn(*calls: tuple[str, dict[str, Any]], text: str = "", tokens: int = 10) -> ModelTurn:
    """A model turn that calls the given tools."""
    return ModelTurn(
        text=text,
        tool_calls=[ToolCall(id=f"call_{i}", name=name, arguments=args) for i, (name, args) in enumerate(calls)],
        usage=LanguageModelUsage(input_tokens=tokens, output_tokens=tokens // 2),
        finish_reason="tool_calls",
    )


def text_turn(text: str, tokens: int = 10) -> ModelTurn:
    return ModelTurn(
        text=text,
        usage=LanguageModelUsage(input_tokens=tokens, output_tokens=tokens // 2),
        finish_reason="stop",
    )


class ScriptedLLM:
    """LLMClient that replays model turns from a script.

    The last turn repeats once the script is exhausted. ``fail_at`` makes
    the model call for that step raise. ``seen`` keeps a copy of the
    conversation passed to each model call.
    """

    def __init__(self, turns: Iterable[ModelTurn], fail_at: int | None = None) -> None:
        self.turns = list(turns)
        self.fail_at = fail_at
        self.calls = 0
        self.requests: list[GenerateRequest] = []
        self.seen: list[list[Message]] = []

    @property
    def model(self) -> str:
        return "scripted"

    def get_language_model(self) -> str:
        return "scripted"

    async def complete(self, system, messages, tools, request) -> ModelTurn:
        self.calls += 1
        self.seen.append(list(messages))
        if self.fail_at is not None and self.calls == self.fail_at:
            raise RuntimeError("model unavailable")
        return self.turns[min(self.calls, len(self.turns)) - 1]

    def stream_generate(self, request: GenerateRequest) -> AsyncIterator[StepResult]:
        self.requests.append(request)
        return run_tool_loop(self.complete, request)

    async def generate(self, request: GenerateRequest) -> GenerateResult:
        steps = [step async for step in self.stream_generate(request)]
        return GenerateResult.from_steps(steps)


def sse(payload: dict[str, Any]) -> str:
    """Encode one streamed record."""
    return f"data: {json.dumps(payload)}\n\n"


def finished(result: Any) -> str:
    return sse({"type": "system", "data": {"status": "finished", "result": result}})


def log_record(message: str, category: str = "action", level: int = 1) -> str:
    return sse({"type": "log", "data": {"message": {"message": message, "category": category, "level": level}}})


async def chunked(*parts: str) -> AsyncIterator[str]:
    for part in parts:
        yield part


class CountingStream(httpx.AsyncByteStream):
    """Response body that counts how many chunks were pulled."""

    def __init__(self, chunks: Iterable[str]) -> None:
        self.chunks = [c.encode("utf-8") for c in chunks]
        self.reads = 0

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            self.reads += 1
            yield chunk


def create_mock_llm_response(
    content: str = "Test response",
    tool_calls: list[dict[str, Any]] | None = None,
    prompt_tokens: int = 12,
    completion_tokens: int = 5,
) -> Any:
    """Create a mock litellm response object."""
    message = Mock()
    message.content = content
    if tool_calls:
        message.tool_calls = []
        for call in tool_calls:
            tc = Mock()
            tc.id = call["id"]
            tc.function = Mock()
            tc.function.name = call["name"]
            tc.function.arguments = call["arguments"]
            message.tool_calls.append(tc)
    else:
        message.tool_calls = None

    response = Mock()
    response.choices = [Mock()]
    response.choices[0].message = message
    response.choices[0].finish_reason = "tool_calls" if tool_calls else "stop"
    response.usage = Mock()
    response.usage.prompt_tokens = prompt_tokens
    response.usage.completion_tokens = completion_tokens
    response.usage.completion_tokens_details = None
    response.usage.prompt_tokens_details = None
    return response
