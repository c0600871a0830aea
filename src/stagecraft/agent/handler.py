"""Agent step orchestration.

A run goes Preparing -> Stepping (at most ``max_steps`` times) -> Finished.
Each step the model picks tools; the step handler maps the executed tool
calls to AgentActions, folds them into the run's AgentState and fires the
lifecycle hooks. The same machinery backs the blocking ``execute`` and
the streaming ``stream`` entry points.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass, replace
from typing import Any

from stagecraft.agent.actions import map_tool_call_to_actions
from stagecraft.agent.executor import ActionExecutor
from stagecraft.agent.hooks import invoke_hook
from stagecraft.agent.prompts import build_system_prompt
from stagecraft.agent.tools import AGENT_TOOL_NAMES, create_tools
from stagecraft.agent.types import (
    AgentExecuteOptions,
    AgentHooks,
    AgentResult,
    AgentState,
    AgentUsage,
    StepEndInfo,
    StepStartInfo,
)
from stagecraft.browser import BrowserContext, Page
from stagecraft.core.llm import (
    GenerateRequest,
    GenerateResult,
    LLMClient,
    Message,
    Role,
    StepResult,
    ToolSet,
)
from stagecraft.core.llm.provider import StepFinishCallback, StepStartCallback
from stagecraft.errors import MissingModelConfigurationError
from stagecraft.logging import LogSink, emit
from stagecraft.metrics import FunctionName, MetricsAggregator
from stagecraft.replay import ReplayRecorder

CLOSE_TOOL = "close"
DEFAULT_FINAL_MESSAGE = "Task execution completed"
TASK_COMPLETED_MESSAGE = "Task completed successfully"


@dataclass(slots=True)
class RunContext:
    """Everything Preparing resolves for one run."""

    options: AgentExecuteOptions
    max_steps: int
    system_prompt: str
    tools: ToolSet
    messages: list[Message]
    started_at: float


class AgentStreamResult:
    """Handle for a streaming run.

    Iterate it to observe steps as they finish; await ``result`` for the
    final AgentResult. ``result`` raises if the model client fails.
    """

    _END = object()

    def __init__(
        self,
        steps: AsyncIterator[StepResult],
        finalize: Callable[[list[StepResult]], AgentResult],
        on_error: Callable[[Exception], None],
    ) -> None:
        self.result: asyncio.Future[AgentResult] = asyncio.get_running_loop().create_future()
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._task = asyncio.create_task(self._pump(steps, finalize, on_error))
        self._task.add_done_callback(self._on_done)

    async def _pump(
        self,
        steps: AsyncIterator[StepResult],
        finalize: Callable[[list[StepResult]], AgentResult],
        on_error: Callable[[Exception], None],
    ) -> None:
        collected: list[StepResult] = []
        try:
            async for step in steps:
                collected.append(step)
                self._queue.put_nowait(step)
            agent_result = finalize(collected)
        except Exception as e:
            on_error(e)
            if not self.result.done():
                self.result.set_exception(e)
        else:
            if not self.result.done():
                self.result.set_result(agent_result)

    def _on_done(self, task: asyncio.Task) -> None:
        # Also runs when the task is cancelled before it ever started
        if task.cancelled():
            self.result.cancel()
        elif self.result.done() and not self.result.cancelled():
            # Failures already went to on_error; mark them retrieved
            self.result.exception()
        self._queue.put_nowait(self._END)

    def __aiter__(self) -> AsyncIterator[StepResult]:
        return self._events()

    async def _events(self) -> AsyncIterator[StepResult]:
        while True:
            item = await self._queue.get()
            if item is self._END:
                return
            yield item

    def cancel(self) -> None:
        self._task.cancel()

    def done(self) -> bool:
        return self._task.done()


class AgentStepOrchestrator:
    """Multi-step, tool-calling agent over a browser context."""

    default_max_steps = 20

    def __init__(
        self,
        context: BrowserContext,
        llm: LLMClient | None,
        *,
        executor: ActionExecutor | None = None,
        recorder: ReplayRecorder | None = None,
        logger: LogSink | None = None,
        system_instructions: str | None = None,
        extra_tools: ToolSet | None = None,
        hooks: AgentHooks | None = None,
        metrics: MetricsAggregator | None = None,
        max_steps: int | None = None,
        temperature: float | None = 1.0,
    ) -> None:
        self._context = context
        self._llm = llm
        self._logger = logger
        self._system_instructions = system_instructions
        self._extra_tools = dict(extra_tools or {})
        self._hooks = hooks or AgentHooks()
        self._metrics = metrics or MetricsAggregator()
        self._max_steps = max_steps or self.default_max_steps
        self._temperature = temperature
        self._executor = executor or self._create_executor(recorder)

    def _create_executor(self, recorder: ReplayRecorder | None) -> ActionExecutor:
        # Tool-level actions: no settle delays
        return ActionExecutor(
            self._context,
            recorder=recorder,
            logger=self._logger,
            wait_between_actions_ms=0,
            pre_action_delay_ms=0,
        )

    @property
    def metrics(self) -> MetricsAggregator:
        return self._metrics

    @property
    def executor(self) -> ActionExecutor:
        return self._executor

    def _log(self, message: str, level: int = 1) -> None:
        emit(self._logger, "agent", message, level)

    def create_tools(self) -> ToolSet:
        return create_tools(self._executor, AGENT_TOOL_NAMES)

    def build_system_prompt(self, instruction: str) -> str:
        return build_system_prompt(instruction, self._system_instructions)

    async def _prepare_page(self, page: Page, options: AgentExecuteOptions) -> None:
        """Adjust the page before the first step. No-op by default."""

    async def _initial_messages(self, page: Page, options: AgentExecuteOptions) -> list[Message]:
        return [Message(role=Role.USER, content=options.instruction)]

    # -- Preparing ----------------------------------------------------------

    async def prepare(
        self, instruction_or_options: str | AgentExecuteOptions
    ) -> tuple[RunContext, AgentState]:
        """Resolve prompt, tools and initial page state for one run.

        Raises:
            MissingModelConfigurationError: No usable model client.
        """
        started_at = time.monotonic()
        options = AgentExecuteOptions.coerce(instruction_or_options)
        try:
            if self._llm is None or not callable(getattr(self._llm, "get_language_model", None)):
                raise MissingModelConfigurationError()
            self._llm.get_language_model()

            page = await self._context.active_page()
            await self._prepare_page(page, options)

            run = RunContext(
                options=options,
                max_steps=options.max_steps or self._max_steps,
                system_prompt=self.build_system_prompt(options.instruction),
                tools={**self.create_tools(), **self._extra_tools},
                messages=await self._initial_messages(page, options),
                started_at=started_at,
            )
            state = AgentState(current_page_url=page.url())
        except Exception as e:
            self._log(f"Failed to prepare agent run: {e}", 0)
            raise
        self._log(f"Executing agent task: {options.instruction} (max {run.max_steps} steps)")
        return run, state

    # -- Stepping -----------------------------------------------------------

    def _stop_when(self, run: RunContext) -> Callable[[Sequence[StepResult]], bool]:
        def should_stop(steps: Sequence[StepResult]) -> bool:
            if steps and any(c.name == CLOSE_TOOL for c in steps[-1].tool_calls):
                return True
            return len(steps) >= run.max_steps

        return should_stop

    def _create_step_start(self, run: RunContext, state: AgentState) -> StepStartCallback:
        async def on_step_start(step_number: int) -> bool:
            info = StepStartInfo(step_number, run.max_steps, run.options.instruction)
            if await invoke_hook(self._hooks.on_step_start, info, self._logger):
                self._log(f"Run stopped by on_step_start hook before step {step_number}")
                state.stopped_by_hook = True
                return True
            return False

        return on_step_start

    def _create_step_handler(
        self, run: RunContext, state: AgentState
    ) -> StepFinishCallback:
        async def on_step_finish(step: StepResult) -> None:
            if step.tool_calls and step.text:
                state.collected_reasoning.append(step.text)

            results = {r.tool_call_id: r for r in step.tool_results}
            step_url = state.current_page_url
            performed = 0
            for call in step.tool_calls:
                if call.name == CLOSE_TOOL:
                    self._handle_close(call.arguments, state)
                for action in map_tool_call_to_actions(
                    call, results.get(call.id), reasoning=step.text, logger=self._logger
                ):
                    timestamp = int(time.time() * 1000)
                    stamped = replace(action, page_url=step_url, timestamp=timestamp)
                    state.actions.append(stamped)
                    performed += 1

            page = await self._context.active_page()
            state.current_page_url = page.url()
            self._log(f"Step {step.step_number}: {performed} action(s)", 2)

            info = StepEndInfo(
                step.step_number,
                run.max_steps,
                run.options.instruction,
                performed,
                state.completed,
            )
            await invoke_hook(self._hooks.on_step_end, info, self._logger)

        return on_step_finish

    def _handle_close(self, arguments: dict[str, Any], state: AgentState) -> None:
        if state.completed:
            return
        state.completed = True
        if not arguments.get("taskComplete"):
            return
        reasoning = " ".join(state.collected_reasoning).strip()
        close_reasoning = str(arguments.get("reasoning") or "").strip()
        message = " ".join(part for part in (reasoning, close_reasoning) if part)
        state.final_message = message or TASK_COMPLETED_MESSAGE

    def _build_request(self, run: RunContext, state: AgentState) -> GenerateRequest:
        return GenerateRequest(
            system=run.system_prompt,
            messages=list(run.messages),
            tools=run.tools,
            stop_when=self._stop_when(run),
            on_step_start=self._create_step_start(run, state),
            on_step_finish=self._create_step_handler(run, state),
            temperature=self._temperature,
        )

    # -- Finished -----------------------------------------------------------

    def _record_duration(self, run: RunContext, usage: AgentUsage | None = None) -> int:
        duration_ms = int((time.monotonic() - run.started_at) * 1000)
        usage = usage or AgentUsage()
        self._metrics.update(
            FunctionName.AGENT,
            prompt_tokens=usage.input_tokens,
            completion_tokens=usage.output_tokens,
            reasoning_tokens=usage.reasoning_tokens,
            cached_input_tokens=usage.cached_input_tokens,
            inference_time_ms=duration_ms,
        )
        return duration_ms

    def _consolidate(
        self, run: RunContext, state: AgentState, result: GenerateResult
    ) -> AgentResult:
        if not state.final_message:
            reasoning = " ".join(state.collected_reasoning).strip()
            state.final_message = reasoning or result.text.strip()

        usage = AgentUsage(
            input_tokens=result.usage.input_tokens,
            output_tokens=result.usage.output_tokens,
            reasoning_tokens=result.usage.reasoning_tokens,
            cached_input_tokens=result.usage.cached_input_tokens,
        )
        usage.inference_time_ms = self._record_duration(run, usage)

        self._log(
            f"Agent run finished after {len(result.steps)} step(s), completed={state.completed}"
        )
        return AgentResult(
            success=state.completed,
            message=state.final_message or DEFAULT_FINAL_MESSAGE,
            actions=list(state.actions),
            completed=state.completed,
            usage=usage,
        )

    def _fail(self, run: RunContext, state: AgentState, error: Exception) -> AgentResult:
        self._log(f"Error executing agent task: {error}", 0)
        self._record_duration(run)
        return AgentResult(
            success=False,
            message=f"Failed to execute task: {error}",
            actions=list(state.actions),
            completed=False,
        )

    # -- entry points -------------------------------------------------------

    async def execute(self, instruction_or_options: str | AgentExecuteOptions) -> AgentResult:
        """Run to completion. Loop failures come back as a failed result."""
        run, state = await self.prepare(instruction_or_options)
        try:
            result = await self._llm.generate(self._build_request(run, state))
        except Exception as e:
            return self._fail(run, state, e)
        return self._consolidate(run, state, result)

    async def stream(
        self, instruction_or_options: str | AgentExecuteOptions
    ) -> AgentStreamResult:
        """Start a run in the background and return its handle immediately."""
        run, state = await self.prepare(instruction_or_options)
        steps = self._llm.stream_generate(self._build_request(run, state))

        def on_error(error: Exception) -> None:
            self._log(f"Error during streaming: {error}", 0)
            self._record_duration(run)

        return AgentStreamResult(
            steps,
            finalize=lambda collected: self._consolidate(
                run, state, GenerateResult.from_steps(collected)
            ),
            on_error=on_error,
        )
