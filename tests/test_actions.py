"""Tests for action kinds and tool-call mapping."""

from __future__ import annotations

from stagecraft.agent import (
    TOOL_ACTION_TYPES,
    ActionType,
    map_tool_call_to_actions,
    parse_action_type,
)
from stagecraft.core.llm import ToolCall, ToolResult
from tests.utils import LineCollector


class TestParseActionType:
    def test_known(self) -> None:
        assert parse_action_type("click") is ActionType.CLICK
        assert parse_action_type("open_web_browser") is ActionType.OPEN_WEB_BROWSER

    def test_camel_case_aliases(self) -> None:
        assert parse_action_type("doubleClick") is ActionType.DOUBLE_CLICK
        assert parse_action_type("tripleClick") is ActionType.TRIPLE_CLICK

    def test_unknown(self) -> None:
        assert parse_action_type("hover") is None
        assert parse_action_type(None) is None


class TestMapToolCallToActions:
    def test_table_is_deterministic(self) -> None:
        assert TOOL_ACTION_TYPES["navback"] is ActionType.BACK
        assert TOOL_ACTION_TYPES["keys"] is ActionType.KEYPRESS

    def test_arguments_become_payload(self) -> None:
        [action] = map_tool_call_to_actions(
            ToolCall("c1", "click", {"x": 5, "y": 6}), reasoning="press the button"
        )
        assert action.type == "click"
        assert action.payload == {"x": 5, "y": 6}
        assert action.reasoning == "press the button"

    def test_unknown_tool_logged_as_custom_tool(self) -> None:
        lines = LineCollector()
        [action] = map_tool_call_to_actions(
            ToolCall("c1", "lookup_price", {"sku": "A1"}), logger=lines
        )
        assert action.type == "custom_tool"
        assert action.payload == {"tool_name": "lookup_price", "arguments": {"sku": "A1"}}
        assert any("lookup_price" in m for m in lines.messages())

    def test_error_result_attached(self) -> None:
        call = ToolCall("c1", "goto", {"url": "x"})
        result = ToolResult("c1", "goto", "navigation failed", is_error=True)
        [action] = map_tool_call_to_actions(call, result)
        assert action.payload["error"] == "navigation failed"

    def test_empty_reasoning_dropped(self) -> None:
        [action] = map_tool_call_to_actions(ToolCall("c1", "wait", {}), reasoning="")
        assert action.reasoning is None
