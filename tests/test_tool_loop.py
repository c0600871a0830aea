"""Tests for the provider-independent tool loop."""

from __future__ import annotations

import pytest

from stagecraft.core.llm import (
    GenerateRequest,
    LanguageModelUsage,
    Message,
    Role,
    Tool,
    ToolOutput,
    run_tool_loop,
)
from stagecraft.core.llm.tool_loop import SCREENSHOT_NOTE, serialize_tool_output
from tests.utils import ScriptedLLM, text_turn, tool_turn


def echo_tool(calls: list) -> Tool:
    async def execute(args):
        calls.append(args)
        return {"echo": args.get("value")}

    return Tool("echo", "Echo a value", {"type": "object"}, execute)


def request(tools=None, **kwargs) -> GenerateRequest:
    return GenerateRequest(
        system="sys",
        messages=[Message(Role.USER, "go")],
        tools=tools or {},
        **kwargs,
    )


class TestSerializeToolOutput:
    def test_strings_pass_through(self) -> None:
        assert serialize_tool_output("ok") == "ok"

    def test_objects_become_json(self) -> None:
        assert serialize_tool_output({"a": 1}) == '{"a": 1}'


class TestRunToolLoop:
    """Tests for run_tool_loop."""

    @pytest.mark.asyncio
    async def test_stops_when_model_stops_calling_tools(self) -> None:
        calls: list = []
        llm = ScriptedLLM([tool_turn(("echo", {"value": 1})), text_turn("done")])
        steps = [s async for s in run_tool_loop(llm.complete, request({"echo": echo_tool(calls)}))]

        assert [s.step_number for s in steps] == [1, 2]
        assert calls == [{"value": 1}]
        assert steps[0].tool_results[0].output == {"echo": 1}
        assert steps[1].text == "done"

    @pytest.mark.asyncio
    async def test_stop_when_evaluated_per_step(self) -> None:
        llm = ScriptedLLM([tool_turn(("echo", {}), ("echo", {}))])
        seen: list[int] = []

        def stop_when(steps):
            seen.append(len(steps))
            return len(steps) >= 2

        req = request({"echo": echo_tool([])}, stop_when=stop_when)
        steps = [s async for s in run_tool_loop(llm.complete, req)]
        assert len(steps) == 2
        assert seen == [1, 2]

    @pytest.mark.asyncio
    async def test_step_start_can_stop(self) -> None:
        llm = ScriptedLLM([tool_turn(("echo", {}))])

        async def on_step_start(n):
            return n == 2

        req = request({"echo": echo_tool([])}, on_step_start=on_step_start)
        steps = [s async for s in run_tool_loop(llm.complete, req)]
        assert len(steps) == 1
        assert llm.calls == 1

    @pytest.mark.asyncio
    async def test_on_step_finish_runs_before_yield(self) -> None:
        finished: list[int] = []

        async def on_step_finish(step):
            finished.append(step.step_number)

        llm = ScriptedLLM([text_turn("only")])
        async for step in run_tool_loop(llm.complete, request(on_step_finish=on_step_finish)):
            assert finished == [step.step_number]

    @pytest.mark.asyncio
    async def test_unknown_tool_reported_to_model(self) -> None:
        llm = ScriptedLLM([tool_turn(("missing", {})), text_turn("ok")])
        steps = [s async for s in run_tool_loop(llm.complete, request())]
        result = steps[0].tool_results[0]
        assert result.is_error
        assert "Unknown tool" in result.output

    @pytest.mark.asyncio
    async def test_tool_exception_propagates(self) -> None:
        async def explode(args):
            raise ValueError("tool broke")

        tools = {"boom": Tool("boom", "", {"type": "object"}, explode)}
        llm = ScriptedLLM([tool_turn(("boom", {}))])
        with pytest.raises(ValueError, match="tool broke"):
            async for _ in run_tool_loop(llm.complete, request(tools)):
                pass

    @pytest.mark.asyncio
    async def test_generate_sums_usage(self) -> None:
        llm = ScriptedLLM([tool_turn(("echo", {}), tokens=10), text_turn("end", tokens=20)])
        result = await llm.generate(request({"echo": echo_tool([])}))
        assert result.usage == LanguageModelUsage(input_tokens=30, output_tokens=15)
        assert result.text == "end"
        assert len(result.steps) == 2


def capture_tool(name: str, image: str | None) -> Tool:
    async def execute(args):
        if image is None:
            return {"success": True}
        return ToolOutput({"success": True}, images=(image,))

    return Tool(name, "Act and capture", {"type": "object"}, execute)


class TestToolImages:
    """Images returned by tools are shown to the model in a user message."""

    @pytest.mark.asyncio
    async def test_latest_image_follows_tool_results(self) -> None:
        tools = {"a": capture_tool("a", "first"), "b": capture_tool("b", "second")}
        llm = ScriptedLLM([tool_turn(("a", {}), ("b", {})), text_turn("done")])
        steps = [s async for s in run_tool_loop(llm.complete, request(tools))]

        conversation = llm.seen[1]
        assert [m.role for m in conversation] == [Role.USER, Role.ASSISTANT, Role.TOOL, Role.TOOL, Role.USER]
        assert conversation[2].content == '{"success": true}'
        assert conversation[-1].content == SCREENSHOT_NOTE
        assert conversation[-1].images == ("second",)
        assert steps[0].tool_results[0].output == {"success": True}

    @pytest.mark.asyncio
    async def test_no_image_no_extra_message(self) -> None:
        tools = {"a": capture_tool("a", None)}
        llm = ScriptedLLM([tool_turn(("a", {})), text_turn("done")])
        [s async for s in run_tool_loop(llm.complete, request(tools))]
        assert llm.seen[1][-1].role is Role.TOOL
