"""Provider-independent multi-step tool loop.

Both blocking and streaming generation go through ``run_tool_loop``:
``generate`` drains it, ``stream_generate`` hands it to the caller.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from stagecraft.core.llm.provider import (
    GenerateRequest,
    Message,
    ModelTurn,
    Role,
    StepResult,
    ToolOutput,
    ToolResult,
    ToolSet,
)
from stagecraft.logging import get_logger

log = get_logger("llm")

CompleteFn = Callable[[str, list[Message], ToolSet, GenerateRequest], Awaitable[ModelTurn]]

SCREENSHOT_NOTE = "Screenshot of the page after the last action."


def serialize_tool_output(output: Any) -> str:
    """Render a tool output as message content."""
    if isinstance(output, str):
        return output
    return json.dumps(output, default=str)


async def run_tool_loop(
    complete: CompleteFn,
    request: GenerateRequest,
) -> AsyncIterator[StepResult]:
    """Drive model calls and tool executions step by step.

    Args:
        complete: Performs a single model call for the current conversation.
        request: Tools, callbacks and the initial conversation.

    Yields:
        One StepResult per model call, after ``on_step_finish`` has run.
    """
    messages = list(request.messages)
    steps: list[StepResult] = []
    step_number = 0

    while True:
        step_number += 1
        if request.on_step_start and await request.on_step_start(step_number):
            log.debug("Step %d start hook requested stop", step_number)
            return

        turn = await complete(request.system, messages, request.tools, request)
        messages.append(
            Message(role=Role.ASSISTANT, content=turn.text, tool_calls=tuple(turn.tool_calls))
        )

        results: list[ToolResult] = []
        images: list[str] = []
        for call in turn.tool_calls:
            tool = request.tools.get(call.name)
            if tool is None:
                log.warning("Model called unknown tool %r", call.name)
                result = ToolResult(call.id, call.name, f"Unknown tool: {call.name}", is_error=True)
            else:
                output = await tool.execute(call.arguments)
                if isinstance(output, ToolOutput):
                    images.extend(output.images)
                    output = output.content
                result = ToolResult(call.id, call.name, output)
            results.append(result)
            messages.append(
                Message(
                    role=Role.TOOL,
                    content=serialize_tool_output(result.output),
                    tool_call_id=call.id,
                    name=call.name,
                )
            )
        if images:
            # Earlier captures in the step are superseded by the last one
            messages.append(Message(role=Role.USER, content=SCREENSHOT_NOTE, images=(images[-1],)))

        step = StepResult(
            step_number=step_number,
            text=turn.text,
            tool_calls=list(turn.tool_calls),
            tool_results=results,
            usage=turn.usage,
            finish_reason=turn.finish_reason,
        )
        steps.append(step)

        if request.on_step_finish:
            await request.on_step_finish(step)
        yield step

        if not turn.tool_calls:
            return
        if request.stop_when and request.stop_when(steps):
            return
