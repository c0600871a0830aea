"""Execution of computer-use actions against a page.

Every action kind maps onto one or more page primitives. When a replay
recorder is active, each executed action also produces one ReplayStep
with a resolved element locator so the run can be repeated without a
model.
"""

from __future__ import annotations

import asyncio
import base64
import inspect
import math
from collections.abc import Awaitable, Callable
from typing import Any

from stagecraft.agent.actions import ActionType, parse_action_type
from stagecraft.agent.types import ActionExecutionResult, AgentAction
from stagecraft.browser import BrowserContext, Page, map_key_to_playwright
from stagecraft.errors import ActionExecutionError
from stagecraft.logging import LogSink, emit
from stagecraft.replay import (
    ActStep,
    BackStep,
    ForwardStep,
    GotoStep,
    ReplayAction,
    ReplayRecorder,
    ScrollStep,
    WaitStep,
)

XPATH_PREFIX = "xpath="
DRAG_DESCRIPTION = "drag and drop"
DEFAULT_WAIT_MS = 1000
PRE_ACTION_DELAY_MS = 300
DRAG_MIN_STEPS = 5
DRAG_MAX_STEPS = 20
DRAG_DELAY_MS = 10
TYPE_PREVIEW_LIMIT = 30

ScreenshotSink = Callable[[str, str], Any | Awaitable[Any]]


def ensure_xpath(value: Any) -> str | None:
    """Normalize a driver-reported locator to ``xpath=...`` form.

    Returns None when no locator is available.
    """
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value:
        return None
    if value.startswith(XPATH_PREFIX):
        return value
    return f"{XPATH_PREFIX}{value}"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def describe_pointer_action(kind: str, x: Any, y: Any) -> str:
    if _is_number(x) and _is_number(y):
        return f"{kind} at ({_round_half_up(x)}, {_round_half_up(y)})"
    return kind


def describe_type_action(text: str) -> str:
    if len(text) > TYPE_PREVIEW_LIMIT:
        return f'type "{text[:27]}..."'
    return f'type "{text}"'


_CLICK_KINDS = {
    ActionType.CLICK: ("click", 1, "click"),
    ActionType.DOUBLE_CLICK: ("double click", 2, "doubleClick"),
    ActionType.TRIPLE_CLICK: ("triple click", 3, "tripleClick"),
}

# Handled by the capture around every action, or by the caller
_NO_OP_ACTIONS = frozenset(
    {
        ActionType.MOVE,
        ActionType.SCREENSHOT,
        ActionType.OPEN_WEB_BROWSER,
        ActionType.CUSTOM_TOOL,
        ActionType.CLOSE,
    }
)


class ActionExecutor:
    """Runs AgentActions on the active page of a browser context."""

    def __init__(
        self,
        context: BrowserContext,
        *,
        recorder: ReplayRecorder | None = None,
        logger: LogSink | None = None,
        screenshot_sink: ScreenshotSink | None = None,
        wait_between_actions_ms: int = DEFAULT_WAIT_MS,
        pre_action_delay_ms: int = PRE_ACTION_DELAY_MS,
        highlight_cursor: bool = False,
    ) -> None:
        self._context = context
        self._recorder = recorder
        self._logger = logger
        self._screenshot_sink = screenshot_sink
        self.wait_between_actions_ms = wait_between_actions_ms
        self.pre_action_delay_ms = pre_action_delay_ms
        self.highlight_cursor = highlight_cursor

    @property
    def recording(self) -> bool:
        return self._recorder is not None and self._recorder.is_active

    def _log(self, message: str, level: int = 1) -> None:
        emit(self._logger, "action", message, level)

    async def handle(self, action: AgentAction) -> ActionExecutionResult:
        """Execute one action with the surrounding delays and capture.

        Raises:
            ActionExecutionError: A page primitive failed.
        """
        try:
            if self.highlight_cursor:
                await self.inject_cursor()
            await asyncio.sleep(self.pre_action_delay_ms / 1000)
            result = await self.execute_action(action)
            await asyncio.sleep(self.wait_between_actions_ms / 1000)
        except ActionExecutionError:
            raise
        except Exception as e:
            self._log(f"Error executing action {action.type}: {e}", 0)
            raise ActionExecutionError(action.type, str(e)) from e

        result.screenshot = await self.capture_screenshot()
        return result

    async def execute_action(self, action: AgentAction) -> ActionExecutionResult:
        """Map one action onto page primitives. No delays, no capture."""
        action_type = parse_action_type(action.type)
        if action_type is None:
            self._log(f"Unknown action type: {action.type}")
            return ActionExecutionResult(False, error=f"Unknown action {action.type}")
        if action_type in _NO_OP_ACTIONS:
            return ActionExecutionResult(True)

        page = await self._context.active_page()
        if action_type in _CLICK_KINDS:
            await self._click(page, action, action_type)
        elif action_type is ActionType.TYPE:
            await self._type(page, action)
        elif action_type is ActionType.KEYPRESS:
            await self._keypress(page, action)
        elif action_type is ActionType.SCROLL:
            await self._scroll(page, action)
        elif action_type is ActionType.DRAG:
            await self._drag(page, action)
        elif action_type is ActionType.WAIT:
            await self._wait(action)
        elif action_type is ActionType.GOTO:
            url = str(action.get("url") or "")
            await page.goto(url, wait_until="load")
            self._record(GotoStep(url=url))
        elif action_type is ActionType.BACK:
            await page.go_back()
            self._record(BackStep())
        elif action_type is ActionType.FORWARD:
            await page.go_forward()
            self._record(ForwardStep())
        return ActionExecutionResult(True)

    # -- primitives ---------------------------------------------------------

    async def _click(self, page: Page, action: AgentAction, action_type: ActionType) -> None:
        kind, click_count, method = _CLICK_KINDS[action_type]
        x, y = action.get("x"), action.get("y")
        button = action.get("button") or "left"

        if not self.recording:
            await page.click(x, y, button=button, click_count=click_count)
            return

        reported = await page.click(
            x, y, button=button, click_count=click_count, return_xpath=True
        )
        selector = ensure_xpath(reported)
        if selector is None:
            self._log(f"No locator for {kind}; skipping replay step", 2)
            return
        description = describe_pointer_action(kind, x, y)
        self._record_act(action, [ReplayAction(selector, description, method)], description)

    async def _type(self, page: Page, action: AgentAction) -> None:
        text = str(action.get("text") or "")
        await page.type(text)
        if not self.recording:
            return
        selector = ensure_xpath(await page.active_element_xpath())
        if selector is None:
            return
        description = describe_type_action(text)
        self._record_act(action, [ReplayAction(selector, description, "type", (text,))], description)

    async def _keypress(self, page: Page, action: AgentAction) -> None:
        keys = action.get("keys") or []
        if isinstance(keys, str):
            keys = [keys]

        pressed: list[ReplayAction] = []
        for raw in keys:
            key = map_key_to_playwright(str(raw))
            await page.key_press(key)
            pressed.append(ReplayAction("xpath=/html", f"press {key}", "press", (key,)))

        if self.recording and pressed:
            description = ", ".join(p.description for p in pressed)
            self._record_act(action, pressed, description)

    async def _scroll(self, page: Page, action: AgentAction) -> None:
        x, y = action.get("x"), action.get("y")
        delta_x = action.get("scroll_x") or 0
        delta_y = action.get("scroll_y") or 0
        await page.scroll(x or 0, y or 0, delta_x, delta_y)

        anchor = None
        if _is_number(x) and _is_number(y):
            anchor = (_round_half_up(x), _round_half_up(y))
        self._record(ScrollStep(delta_x=delta_x, delta_y=delta_y, anchor=anchor))

    async def _drag(self, page: Page, action: AgentAction) -> None:
        path = action.get("path") or []
        if len(path) < 2:
            self._log("Drag path needs at least two points; nothing to do", 2)
            return
        start, end = path[0], path[-1]
        steps = min(DRAG_MAX_STEPS, max(DRAG_MIN_STEPS, len(path)))

        reported = await page.drag_and_drop(
            start["x"],
            start["y"],
            end["x"],
            end["y"],
            steps=steps,
            delay=DRAG_DELAY_MS,
            return_xpath=self.recording,
        )
        if not self.recording:
            return
        from_xpath, to_xpath = reported or ("", "")
        source, target = ensure_xpath(from_xpath), ensure_xpath(to_xpath)
        if source is None or target is None:
            return
        self._record_act(
            action,
            [ReplayAction(source, DRAG_DESCRIPTION, "dragAndDrop", (target,))],
            DRAG_DESCRIPTION,
        )

    async def _wait(self, action: AgentAction) -> None:
        time_ms = action.get("time_ms")
        if not _is_number(time_ms):
            time_ms = DEFAULT_WAIT_MS
        await asyncio.sleep(time_ms / 1000)
        if time_ms > 0:
            self._record(WaitStep(time_ms=int(time_ms)))

    # -- replay -------------------------------------------------------------

    def _record(self, step: Any) -> None:
        if self.recording:
            self._recorder.record(step)

    def _record_act(
        self,
        action: AgentAction,
        replay_actions: list[ReplayAction],
        fallback: str,
    ) -> None:
        instruction = str(action.get("action") or "").strip()
        reasoning = (action.reasoning or "").strip()
        self._record(
            ActStep(
                instruction=instruction or reasoning or fallback,
                actions=tuple(replay_actions),
                action_description=replay_actions[0].description or fallback,
                message=reasoning or None,
            )
        )

    # -- best-effort side steps ---------------------------------------------

    async def inject_cursor(self) -> None:
        """Enable the cursor overlay. Failures are only logged."""
        try:
            page = await self._context.active_page()
            await page.enable_cursor_overlay()
        except Exception as e:
            self._log(f"Failed to inject cursor overlay: {e}", 2)

    async def current_url(self) -> str:
        page = await self._context.active_page()
        return page.url()

    async def capture_screenshot(self) -> str | None:
        """Capture the viewport as base64 PNG and hand it to the sink.

        Returns None when capture fails; the failure is logged.
        """
        try:
            page = await self._context.active_page()
            data = base64.b64encode(await page.screenshot(full_page=False)).decode("ascii")
            if self._screenshot_sink is not None:
                sent = self._screenshot_sink(data, page.url())
                if inspect.isawaitable(sent):
                    await sent
            return data
        except Exception as e:
            self._log(f"Error capturing screenshot: {e}", 0)
            return None
