"""Tests for the litellm-backed model client."""

from __future__ import annotations

from unittest.mock import AsyncMock, Mock, patch

import pytest

from stagecraft.core.llm import (
    GenerateRequest,
    LiteLLMClient,
    LLMClient,
    Message,
    Role,
    Tool,
    ToolCall,
    create_client,
)
from stagecraft.core.llm.litellm_provider import _parse_arguments, _parse_usage, _to_wire_message
from tests.utils import create_mock_llm_response


async def noop(args):
    return "ok"


def request(**kwargs) -> GenerateRequest:
    return GenerateRequest(
        system="You drive a browser.",
        messages=[Message(Role.USER, "open example.com")],
        tools={"goto": Tool("goto", "Navigate", {"type": "object"}, noop)},
        **kwargs,
    )


class TestWireConversion:
    def test_assistant_tool_calls(self) -> None:
        message = Message(
            Role.ASSISTANT, "", tool_calls=(ToolCall("c1", "goto", {"url": "https://a.test"}),)
        )
        wire = _to_wire_message(message)
        assert wire["content"] is None
        assert wire["tool_calls"][0]["function"] == {
            "name": "goto",
            "arguments": '{"url": "https://a.test"}',
        }

    def test_tool_message(self) -> None:
        wire = _to_wire_message(Message(Role.TOOL, "ok", tool_call_id="c1", name="goto"))
        assert wire == {"role": "tool", "tool_call_id": "c1", "name": "goto", "content": "ok"}

    def test_user_message_with_image(self) -> None:
        wire = _to_wire_message(Message(Role.USER, "look", images=("iVBORw==",)))
        assert wire == {
            "role": "user",
            "content": [
                {"type": "text", "text": "look"},
                {"type": "image_url", "image_url": {"url": "data:image/png;base64,iVBORw=="}},
            ],
        }

    def test_plain_user_message(self) -> None:
        assert _to_wire_message(Message(Role.USER, "go")) == {"role": "user", "content": "go"}

    def test_parse_arguments(self) -> None:
        assert _parse_arguments('{"x": 1}') == {"x": 1}
        assert _parse_arguments("") == {}
        assert _parse_arguments("{bad") == {}
        assert _parse_arguments("[1, 2]") == {}

    def test_parse_usage_details(self) -> None:
        usage = Mock()
        usage.prompt_tokens = 100
        usage.completion_tokens = 20
        usage.completion_tokens_details = Mock(reasoning_tokens=7)
        usage.prompt_tokens_details = Mock(cached_tokens=50)
        parsed = _parse_usage(usage)
        assert (parsed.input_tokens, parsed.output_tokens) == (100, 20)
        assert (parsed.reasoning_tokens, parsed.cached_input_tokens) == (7, 50)


class TestLiteLLMClient:
    """Tests for LiteLLMClient."""

    def test_satisfies_protocol(self) -> None:
        client = create_client("gpt-4.1")
        assert isinstance(client, LLMClient)
        assert client.get_language_model() == "gpt-4.1"

    @pytest.mark.asyncio
    async def test_complete_builds_kwargs(self) -> None:
        client = LiteLLMClient("gpt-4.1", api_key="sk-test", api_base="http://local/v1")
        with patch(
            "litellm.acompletion", new=AsyncMock(return_value=create_mock_llm_response("hi"))
        ) as mock_completion:
            req = request(temperature=0.2, max_tokens=256)
            turn = await client.complete(req.system, req.messages, req.tools, req)

        kwargs = mock_completion.call_args.kwargs
        assert kwargs["model"] == "gpt-4.1"
        assert kwargs["messages"][0] == {"role": "system", "content": "You drive a browser."}
        assert kwargs["tools"][0]["function"]["name"] == "goto"
        assert kwargs["tool_choice"] == "auto"
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 256
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["api_base"] == "http://local/v1"
        assert turn.text == "hi"
        assert turn.usage.input_tokens == 12

    @pytest.mark.asyncio
    async def test_generate_runs_tools(self) -> None:
        executed: list[dict] = []

        async def goto(args):
            executed.append(args)
            return {"success": True}

        responses = [
            create_mock_llm_response(
                "",
                tool_calls=[{"id": "c1", "name": "goto", "arguments": '{"url": "https://a.test"}'}],
            ),
            create_mock_llm_response("Navigation done"),
        ]
        client = LiteLLMClient("gpt-4.1")
        req = request()
        req.tools = {"goto": Tool("goto", "Navigate", {"type": "object"}, goto)}

        with patch("litellm.acompletion", new=AsyncMock(side_effect=responses)) as mock_completion:
            result = await client.generate(req)

        assert executed == [{"url": "https://a.test"}]
        assert result.text == "Navigation done"
        assert len(result.steps) == 2
        assert result.usage.input_tokens == 24
        second_messages = mock_completion.call_args_list[1].kwargs["messages"]
        assert second_messages[-1]["role"] == "tool"
        assert second_messages[-1]["content"] == '{"success": true}'
