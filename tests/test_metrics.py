"""Tests for usage accounting."""

from __future__ import annotations

from stagecraft.metrics import (
    FunctionName,
    MetricsAggregator,
    UsageMetrics,
    aggregate_replay_usage,
)


def page(*actions: dict) -> dict:
    return {"actions": list(actions)}


def action(method: str, **usage: int) -> dict:
    return {"method": method, "tokenUsage": usage}


class TestFunctionName:
    def test_case_insensitive(self) -> None:
        assert FunctionName.from_method("ACT") is FunctionName.ACT
        assert FunctionName.from_method("Observe") is FunctionName.OBSERVE

    def test_unknown(self) -> None:
        assert FunctionName.from_method("navigate") is None
        assert FunctionName.from_method(None) is None


class TestMetricsAggregator:
    """Tests for MetricsAggregator."""

    def test_update_category(self) -> None:
        aggregator = MetricsAggregator()
        aggregator.update(FunctionName.AGENT, prompt_tokens=10, completion_tokens=4, inference_time_ms=250)
        aggregator.update(FunctionName.AGENT, prompt_tokens=5)

        agent = aggregator.metrics.agent
        assert agent.prompt_tokens == 15
        assert agent.completion_tokens == 4
        assert agent.inference_time_ms == 250
        assert aggregator.metrics.total_prompt_tokens == 15

    def test_totals_are_sum_of_categories(self) -> None:
        aggregator = MetricsAggregator()
        aggregator.update(FunctionName.ACT, prompt_tokens=1, reasoning_tokens=2)
        aggregator.update(FunctionName.EXTRACT, prompt_tokens=3, cached_input_tokens=4)
        aggregator.update(FunctionName.OBSERVE, completion_tokens=5)
        aggregator.update(None, prompt_tokens=100)

        metrics = aggregator.metrics
        assert metrics.total_prompt_tokens == 104
        assert metrics.total_completion_tokens == 5
        assert metrics.total_reasoning_tokens == 2
        assert metrics.total_cached_input_tokens == 4

    def test_reset(self) -> None:
        aggregator = MetricsAggregator()
        aggregator.update(FunctionName.ACT, prompt_tokens=1)
        aggregator.reset()
        assert aggregator.metrics == UsageMetrics()

    def test_to_dict(self) -> None:
        aggregator = MetricsAggregator()
        aggregator.update(FunctionName.OBSERVE, completion_tokens=7)
        flat = aggregator.metrics.to_dict()
        assert flat["observe_completion_tokens"] == 7
        assert flat["total_completion_tokens"] == 7
        assert "uncategorized_completion_tokens" not in flat


class TestAggregateReplayUsage:
    """Tests for aggregate_replay_usage."""

    PAGES = [
        page(
            action("act", inputTokens=10, outputTokens=2, reasoningTokens=1, timeMs=300),
            action("extract", inputTokens=20, outputTokens=5, cachedInputTokens=8),
        ),
        page(
            action("observe", inputTokens=3, outputTokens=1, timeMs=50),
            action("agent", inputTokens=40, outputTokens=9, timeMs=900),
            {"method": "act"},
        ),
    ]

    def test_categories(self) -> None:
        metrics = aggregate_replay_usage(self.PAGES)
        assert metrics.act.prompt_tokens == 10
        assert metrics.act.reasoning_tokens == 1
        assert metrics.extract.cached_input_tokens == 8
        assert metrics.observe.inference_time_ms == 50
        assert metrics.agent.completion_tokens == 9

    def test_grand_totals(self) -> None:
        metrics = aggregate_replay_usage(self.PAGES)
        assert metrics.total_prompt_tokens == 73
        assert metrics.total_completion_tokens == 17
        assert metrics.total_inference_time_ms == 1250

    def test_idempotent(self) -> None:
        assert aggregate_replay_usage(self.PAGES) == aggregate_replay_usage(self.PAGES)

    def test_unknown_method_counts_towards_totals_only(self) -> None:
        metrics = aggregate_replay_usage([page(action("navigate", inputTokens=6))])
        assert metrics.act.prompt_tokens == 0
        assert metrics.total_prompt_tokens == 6

    def test_empty(self) -> None:
        assert aggregate_replay_usage([]).total_prompt_tokens == 0
