"""Built-in page tools offered to the model.

Every page tool runs through an ActionExecutor, so the delays, capture
and replay recording are the same whichever orchestrator is driving.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from stagecraft.agent.actions import TOOL_ACTION_TYPES, ActionType
from stagecraft.agent.executor import ActionExecutor
from stagecraft.agent.types import AgentAction
from stagecraft.core.llm import Tool, ToolOutput, ToolSet

_POINT = {
    "type": "object",
    "properties": {"x": {"type": "number"}, "y": {"type": "number"}},
    "required": ["x", "y"],
}


def _object(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def _click_schema() -> dict[str, Any]:
    return _object(
        {
            "x": {"type": "number", "description": "Viewport x coordinate"},
            "y": {"type": "number", "description": "Viewport y coordinate"},
            "button": {"type": "string", "enum": ["left", "right", "middle"]},
            "action": {"type": "string", "description": "What this click is meant to do"},
        },
        ["x", "y"],
    )


_KEYS = _object(
    {"keys": {"type": "array", "items": {"type": "string"}, "description": "Keys to press in order"}},
    ["keys"],
)

TOOL_SPECS: dict[str, tuple[str, dict[str, Any]]] = {
    "click": ("Click at a point on the page.", _click_schema()),
    "double_click": ("Double-click at a point on the page.", _click_schema()),
    "triple_click": ("Triple-click at a point, e.g. to select a paragraph.", _click_schema()),
    "type": (
        "Type text into the focused element.",
        _object({"text": {"type": "string"}, "action": {"type": "string"}}, ["text"]),
    ),
    "keypress": ("Press keys, e.g. Enter or Control.", _KEYS),
    "keys": ("Press keys, e.g. Enter or Control.", _KEYS),
    "scroll": (
        "Scroll the page by a pixel delta at a point.",
        _object(
            {
                "x": {"type": "number"},
                "y": {"type": "number"},
                "scroll_x": {"type": "number"},
                "scroll_y": {"type": "number"},
            },
            ["scroll_y"],
        ),
    ),
    "drag": (
        "Drag the mouse along a path of points.",
        _object({"path": {"type": "array", "items": _POINT, "minItems": 2}}, ["path"]),
    ),
    "move": ("Move the mouse to a point.", _POINT),
    "wait": (
        "Wait before the next action.",
        _object({"time_ms": {"type": "integer", "description": "Milliseconds, default 1000"}}),
    ),
    "screenshot": ("Capture the current viewport.", _object({})),
    "goto": (
        "Navigate to a URL.",
        _object({"url": {"type": "string"}}, ["url"]),
    ),
    "back": ("Go back in history.", _object({})),
    "navback": ("Go back in history.", _object({})),
    "forward": ("Go forward in history.", _object({})),
}

CLOSE_SCHEMA = _object(
    {
        "reasoning": {"type": "string", "description": "Why the task is finished"},
        "taskComplete": {"type": "boolean", "description": "True if the goal was achieved"},
    },
    ["reasoning", "taskComplete"],
)

AGENT_TOOL_NAMES = ("click", "type", "keys", "scroll", "wait", "goto", "navback", "screenshot")
COMPUTER_USE_TOOL_NAMES = (
    "click",
    "double_click",
    "triple_click",
    "type",
    "keypress",
    "scroll",
    "drag",
    "move",
    "wait",
    "screenshot",
    "goto",
    "back",
    "forward",
)


def _with_image(output: dict[str, Any], image: str | None) -> dict[str, Any] | ToolOutput:
    if image is None:
        return output
    return ToolOutput(output, images=(image,))


def _page_tool(executor: ActionExecutor, name: str, show_screenshots: bool) -> Tool:
    description, parameters = TOOL_SPECS[name]
    action_type = TOOL_ACTION_TYPES[name]

    async def execute(args: dict[str, Any]) -> dict[str, Any] | ToolOutput:
        if action_type is ActionType.SCREENSHOT:
            captured = await executor.capture_screenshot()
            url = await executor.current_url()
            return _with_image({"success": captured is not None, "url": url}, captured)

        result = await executor.handle(AgentAction(type=action_type.value, payload=args))
        output: dict[str, Any] = {"success": result.success}
        if not result.success:
            output["error"] = result.error
        if not show_screenshots:
            return output
        output["url"] = await executor.current_url()
        return _with_image(output, result.screenshot)

    return Tool(name=name, description=description, parameters=parameters, execute=execute)


def close_tool() -> Tool:
    async def execute(args: dict[str, Any]) -> dict[str, Any]:
        return {"success": True, "taskComplete": bool(args.get("taskComplete"))}

    return Tool(
        name="close",
        description="Finish the task. Call this once the goal is achieved or cannot be achieved.",
        parameters=CLOSE_SCHEMA,
        execute=execute,
    )


def create_tools(
    executor: ActionExecutor, names: Iterable[str], *, show_screenshots: bool = False
) -> ToolSet:
    """Build the named page tools plus ``close``.

    With ``show_screenshots`` every action returns the post-action capture
    and page URL to the model. The ``screenshot`` tool always does.
    """
    tools: ToolSet = {name: _page_tool(executor, name, show_screenshots) for name in names}
    tools["close"] = close_tool()
    return tools
