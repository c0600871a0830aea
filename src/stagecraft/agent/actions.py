"""Action kinds and the tool-call to action mapping."""

from __future__ import annotations

from enum import Enum
from typing import Any

from stagecraft.agent.types import AgentAction
from stagecraft.core.llm import ToolCall, ToolResult
from stagecraft.logging import LogSink, emit


class ActionType(str, Enum):
    """Closed set of actions the executor understands."""

    CLICK = "click"
    DOUBLE_CLICK = "double_click"
    TRIPLE_CLICK = "triple_click"
    TYPE = "type"
    KEYPRESS = "keypress"
    SCROLL = "scroll"
    DRAG = "drag"
    MOVE = "move"
    WAIT = "wait"
    SCREENSHOT = "screenshot"
    GOTO = "goto"
    BACK = "back"
    FORWARD = "forward"
    OPEN_WEB_BROWSER = "open_web_browser"
    CUSTOM_TOOL = "custom_tool"
    CLOSE = "close"


# camelCase spellings some providers emit
_ALIASES = {
    "doubleClick": ActionType.DOUBLE_CLICK,
    "tripleClick": ActionType.TRIPLE_CLICK,
}


def parse_action_type(raw: str | None) -> ActionType | None:
    """Resolve an action type name, or None if it is not recognised."""
    if raw is None:
        return None
    if raw in _ALIASES:
        return _ALIASES[raw]
    try:
        return ActionType(raw)
    except ValueError:
        return None


# Tool name -> action type. Tool names outside this table become custom_tool.
TOOL_ACTION_TYPES: dict[str, ActionType] = {
    "click": ActionType.CLICK,
    "double_click": ActionType.DOUBLE_CLICK,
    "triple_click": ActionType.TRIPLE_CLICK,
    "type": ActionType.TYPE,
    "keypress": ActionType.KEYPRESS,
    "keys": ActionType.KEYPRESS,
    "scroll": ActionType.SCROLL,
    "drag": ActionType.DRAG,
    "move": ActionType.MOVE,
    "wait": ActionType.WAIT,
    "screenshot": ActionType.SCREENSHOT,
    "goto": ActionType.GOTO,
    "navigate": ActionType.GOTO,
    "back": ActionType.BACK,
    "navback": ActionType.BACK,
    "forward": ActionType.FORWARD,
    "close": ActionType.CLOSE,
}


def map_tool_call_to_actions(
    call: ToolCall,
    result: ToolResult | None = None,
    *,
    reasoning: str | None = None,
    logger: LogSink | None = None,
) -> list[AgentAction]:
    """Translate one executed tool call into the actions it performed."""
    action_type = TOOL_ACTION_TYPES.get(call.name)
    payload: dict[str, Any] = dict(call.arguments)

    if action_type is None:
        emit(logger, "agent", f"Tool {call.name} has no action mapping; recording as custom_tool", 2)
        action_type = ActionType.CUSTOM_TOOL
        payload = {"tool_name": call.name, "arguments": dict(call.arguments)}

    if result is not None and result.is_error:
        payload["error"] = result.output

    return [AgentAction(type=action_type.value, payload=payload, reasoning=reasoning or None)]
