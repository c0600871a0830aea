"""Usage accounting for LLM-backed operations.

Usage is tracked per operation category (act, extract, observe, agent).
Totals are never stored: they are computed from the categories, so they can
never drift from the per-category counters.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FunctionName(Enum):
    """Operation categories that usage is attributed to."""

    ACT = "act"
    EXTRACT = "extract"
    OBSERVE = "observe"
    AGENT = "agent"

    @classmethod
    def from_method(cls, method: str | None) -> FunctionName | None:
        """Resolve a wire method name (case-insensitive), or None if unknown."""
        try:
            return cls((method or "").lower())
        except ValueError:
            return None


@dataclass(slots=True)
class CategoryUsage:
    """Counters for a single category."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    reasoning_tokens: int = 0
    cached_input_tokens: int = 0
    inference_time_ms: int = 0

    def add(
        self,
        prompt_tokens: int = 0,
        completion_tokens: int = 0,
        reasoning_tokens: int = 0,
        cached_input_tokens: int = 0,
        inference_time_ms: int = 0,
    ) -> None:
        self.prompt_tokens += prompt_tokens
        self.completion_tokens += completion_tokens
        self.reasoning_tokens += reasoning_tokens
        self.cached_input_tokens += cached_input_tokens
        self.inference_time_ms += inference_time_ms


_FIELDS = (
    "prompt_tokens",
    "completion_tokens",
    "reasoning_tokens",
    "cached_input_tokens",
    "inference_time_ms",
)


@dataclass(slots=True)
class UsageMetrics:
    """Accumulated usage for act/extract/observe/agent plus totals.

    Usage from methods outside the four named categories lands in
    ``uncategorized``. It is not reported as its own category but still
    counts towards the totals.
    """

    act: CategoryUsage = field(default_factory=CategoryUsage)
    extract: CategoryUsage = field(default_factory=CategoryUsage)
    observe: CategoryUsage = field(default_factory=CategoryUsage)
    agent: CategoryUsage = field(default_factory=CategoryUsage)
    uncategorized: CategoryUsage = field(default_factory=CategoryUsage)

    def category(self, name: FunctionName | None) -> CategoryUsage:
        if name is None:
            return self.uncategorized
        return getattr(self, name.value)

    def _total(self, attr: str) -> int:
        buckets = (self.act, self.extract, self.observe, self.agent, self.uncategorized)
        return sum(getattr(bucket, attr) for bucket in buckets)

    @property
    def total_prompt_tokens(self) -> int:
        return self._total("prompt_tokens")

    @property
    def total_completion_tokens(self) -> int:
        return self._total("completion_tokens")

    @property
    def total_reasoning_tokens(self) -> int:
        return self._total("reasoning_tokens")

    @property
    def total_cached_input_tokens(self) -> int:
        return self._total("cached_input_tokens")

    @property
    def total_inference_time_ms(self) -> int:
        return self._total("inference_time_ms")

    def to_dict(self) -> dict[str, int]:
        """Flatten into ``<category>_<field>`` and ``total_<field>`` keys."""
        flat: dict[str, int] = {}
        for name in FunctionName:
            bucket = self.category(name)
            for attr in _FIELDS:
                flat[f"{name.value}_{attr}"] = getattr(bucket, attr)
        for attr in _FIELDS:
            flat[f"total_{attr}"] = self._total(attr)
        return flat


class MetricsAggregator:
    """Running usage totals for one client or orchestrator."""

    def __init__(self) -> None:
        self._metrics = UsageMetrics()

    @property
    def metrics(self) -> UsageMetrics:
        return self._metrics

    def update(
        self,
        function_name: FunctionName | None,
        prompt_tokens: int = 0,
        completion_tokens: int = 0,
        reasoning_tokens: int = 0,
        cached_input_tokens: int = 0,
        inference_time_ms: int = 0,
    ) -> None:
        """Fold one usage event into the category for ``function_name``."""
        self._metrics.category(function_name).add(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            reasoning_tokens=reasoning_tokens,
            cached_input_tokens=cached_input_tokens,
            inference_time_ms=inference_time_ms,
        )

    def reset(self) -> None:
        self._metrics = UsageMetrics()


def _count(usage: Mapping[str, Any], key: str) -> int:
    value = usage.get(key)
    return int(value) if isinstance(value, (int, float)) else 0


def aggregate_replay_usage(pages: Iterable[Mapping[str, Any]]) -> UsageMetrics:
    """Fold per-action ``tokenUsage`` records from a replay summary.

    Args:
        pages: The ``data.pages`` list of a replay response. Each page holds
            ``actions``; each action a ``method`` and optional ``tokenUsage``.

    Returns:
        A fresh UsageMetrics. Calling this twice on the same input gives
        equal results.
    """
    aggregator = MetricsAggregator()
    for page in pages:
        for action in page.get("actions") or []:
            token_usage = action.get("tokenUsage")
            if not token_usage:
                continue
            aggregator.update(
                FunctionName.from_method(action.get("method")),
                prompt_tokens=_count(token_usage, "inputTokens"),
                completion_tokens=_count(token_usage, "outputTokens"),
                reasoning_tokens=_count(token_usage, "reasoningTokens"),
                cached_input_tokens=_count(token_usage, "cachedInputTokens"),
                inference_time_ms=_count(token_usage, "timeMs"),
            )
    return aggregator.metrics
