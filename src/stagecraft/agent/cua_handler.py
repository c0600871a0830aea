"""Computer-use agent: coordinate-level actions with settle delays."""

from __future__ import annotations

from typing import Any

from stagecraft.agent.executor import ActionExecutor, ScreenshotSink
from stagecraft.agent.handler import AgentStepOrchestrator
from stagecraft.agent.prompts import build_computer_use_prompt
from stagecraft.agent.tools import COMPUTER_USE_TOOL_NAMES, create_tools
from stagecraft.agent.types import AgentExecuteOptions
from stagecraft.browser import Page
from stagecraft.core.llm import Message, Role, ToolSet
from stagecraft.replay import ReplayRecorder

BLANK_URLS = frozenset({"", "about:blank"})
START_URL = "https://www.google.com"


class ComputerUseOrchestrator(AgentStepOrchestrator):
    """Agent whose tools are raw mouse and keyboard actions.

    Every action goes through ActionExecutor.handle, so each one gets the
    pre-action delay, the inter-action wait and a screenshot capture. The
    capture and the page URL go back to the model after every action, and
    the first message carries a capture of the starting page.
    """

    default_max_steps = 10

    def __init__(
        self,
        *args: Any,
        wait_between_actions_ms: int = 1000,
        screenshot_sink: ScreenshotSink | None = None,
        highlight_cursor: bool = True,
        **kwargs: Any,
    ) -> None:
        self._highlight_cursor = highlight_cursor
        self._wait_between_actions_ms = wait_between_actions_ms
        self._screenshot_sink = screenshot_sink
        self._viewport: tuple[int, int] | None = None
        self._start_url: str | None = None
        super().__init__(*args, **kwargs)

    def _create_executor(self, recorder: ReplayRecorder | None) -> ActionExecutor:
        return ActionExecutor(
            self._context,
            recorder=recorder,
            logger=self._logger,
            screenshot_sink=self._screenshot_sink,
            wait_between_actions_ms=self._wait_between_actions_ms,
            highlight_cursor=self._highlight_cursor,
        )

    def create_tools(self) -> ToolSet:
        return create_tools(self._executor, COMPUTER_USE_TOOL_NAMES, show_screenshots=True)

    def build_system_prompt(self, instruction: str) -> str:
        return build_computer_use_prompt(
            instruction,
            self._system_instructions,
            viewport=self._viewport,
            url=self._start_url,
        )

    async def _prepare_page(self, page: Page, options: AgentExecuteOptions) -> None:
        highlight = options.highlight_cursor
        if highlight is None:
            highlight = self._highlight_cursor
        self._executor.highlight_cursor = highlight
        if page.url() in BLANK_URLS:
            self._log(f"Page is blank; navigating to {START_URL} before starting", 2)
            await page.goto(START_URL, wait_until="load")
        if highlight:
            await self._executor.inject_cursor()

        self._start_url = page.url()
        try:
            self._viewport = await page.viewport_size()
        except Exception as e:
            self._log(f"Could not read viewport size: {e}", 2)
            self._viewport = None

    async def _initial_messages(self, page: Page, options: AgentExecuteOptions) -> list[Message]:
        captured = await self._executor.capture_screenshot()
        images = (captured,) if captured is not None else ()
        return [Message(role=Role.USER, content=options.instruction, images=images)]
