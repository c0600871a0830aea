"""Build orchestrators from configuration."""

from __future__ import annotations

from stagecraft.agent.cua_handler import ComputerUseOrchestrator
from stagecraft.agent.handler import AgentStepOrchestrator
from stagecraft.agent.types import AgentHooks
from stagecraft.browser import BrowserContext
from stagecraft.config import Config, get_config
from stagecraft.core.llm import LiteLLMClient, LLMClient, ToolSet
from stagecraft.logging import LogSink
from stagecraft.metrics import MetricsAggregator
from stagecraft.replay import JsonlReplayLog, ReplayLog, ReplayRecorder


def create_recorder(config: Config) -> ReplayRecorder | None:
    """Replay recorder per ``replay`` config, or None when disabled."""
    if not config.replay.enabled:
        return None
    if config.replay.path:
        return JsonlReplayLog(config.replay.path)
    return ReplayLog()


def create_agent(
    context: BrowserContext,
    llm: LLMClient | None = None,
    *,
    computer_use: bool = False,
    config: Config | None = None,
    logger: LogSink | None = None,
    hooks: AgentHooks | None = None,
    extra_tools: ToolSet | None = None,
    metrics: MetricsAggregator | None = None,
    recorder: ReplayRecorder | None = None,
) -> AgentStepOrchestrator:
    """Create an orchestrator configured from ``config`` (global by default).

    When ``llm`` is None and ``llm.model`` is configured, a LiteLLMClient is
    built for it. Without either, the returned orchestrator fails with
    MissingModelConfigurationError when a run is started.
    """
    config = config or get_config()
    if llm is None and config.llm.model:
        extra = {"max_tokens": config.llm.max_tokens} if config.llm.max_tokens else {}
        llm = LiteLLMClient(config.llm.model, api_base=config.llm.api_base, **extra)
    if recorder is None:
        recorder = create_recorder(config)

    common = dict(
        recorder=recorder,
        logger=logger,
        system_instructions=config.agent.system_instructions,
        extra_tools=extra_tools,
        hooks=hooks,
        metrics=metrics,
        temperature=config.llm.temperature,
    )
    if computer_use:
        return ComputerUseOrchestrator(
            context,
            llm,
            max_steps=config.agent.cua_max_steps,
            wait_between_actions_ms=config.agent.wait_between_actions_ms,
            highlight_cursor=config.agent.highlight_cursor,
            **common,
        )
    return AgentStepOrchestrator(context, llm, max_steps=config.agent.max_steps, **common)
