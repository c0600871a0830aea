"""Tests for building orchestrators from configuration."""

from __future__ import annotations

import pytest

from stagecraft.agent import (
    AgentStepOrchestrator,
    ComputerUseOrchestrator,
    create_agent,
    create_recorder,
)
from stagecraft.config import Config
from stagecraft.core.llm import LiteLLMClient
from stagecraft.errors import MissingModelConfigurationError
from stagecraft.replay import JsonlReplayLog, ReplayLog
from tests.utils import ScriptedLLM, tool_turn


class TestCreateRecorder:
    def test_disabled(self) -> None:
        assert create_recorder(Config()) is None

    def test_in_memory(self) -> None:
        config = Config()
        config.replay.enabled = True
        assert isinstance(create_recorder(config), ReplayLog)

    def test_jsonl(self, tmp_path) -> None:
        config = Config()
        config.replay.enabled = True
        config.replay.path = str(tmp_path / "replay.jsonl")
        recorder = create_recorder(config)
        assert isinstance(recorder, JsonlReplayLog)
        assert recorder.path == tmp_path / "replay.jsonl"


class TestCreateAgent:
    def test_builds_litellm_client_from_config(self, context) -> None:
        config = Config()
        config.llm.model = "gpt-4.1"
        agent = create_agent(context, config=config)
        assert isinstance(agent, AgentStepOrchestrator)
        assert isinstance(agent._llm, LiteLLMClient)
        assert agent._llm.model == "gpt-4.1"

    @pytest.mark.asyncio
    async def test_max_steps_from_config(self, context) -> None:
        config = Config()
        config.agent.max_steps = 2
        llm = ScriptedLLM([tool_turn(("click", {"x": 1, "y": 1}))])
        await create_agent(context, llm, config=config).execute("task")
        assert llm.calls == 2

    def test_computer_use(self, context) -> None:
        config = Config()
        config.agent.wait_between_actions_ms = 250
        agent = create_agent(context, ScriptedLLM([]), computer_use=True, config=config)
        assert isinstance(agent, ComputerUseOrchestrator)
        assert agent.executor.wait_between_actions_ms == 250

    @pytest.mark.asyncio
    async def test_without_model(self, context) -> None:
        agent = create_agent(context, config=Config())
        with pytest.raises(MissingModelConfigurationError):
            await agent.execute("task")

    @pytest.mark.asyncio
    async def test_highlight_cursor_from_config(self, context, page, monkeypatch) -> None:
        monkeypatch.setattr("stagecraft.agent.executor.asyncio.sleep", _no_sleep)
        config = Config()
        config.agent.highlight_cursor = False
        llm = ScriptedLLM([tool_turn(("close", {"reasoning": "done", "taskComplete": True}))])
        await create_agent(context, llm, computer_use=True, config=config).execute("task")
        assert "enable_cursor_overlay" not in page.names()


async def _no_sleep(_delay: float) -> None:
    return None
