"""Configuration schema dataclasses for stagecraft.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_API_URL = "https://api.stagehand.browserbase.com/v1"


@dataclass
class APIConfig:
    """Remote session API configuration.

    Example config.yaml:
        api:
          base_url: https://api.stagehand.browserbase.com/v1
          timeout: 300
          reroute_unavailable_sessions: false
    """

    base_url: str = DEFAULT_API_URL
    timeout: float = 300.0  # Seconds, applied to every request
    # When the server reports the hosted session as unavailable, target the
    # caller-supplied session id instead. Rollout compatibility only.
    reroute_unavailable_sessions: bool = False


@dataclass
class LLMConfig:
    """Model client configuration."""

    model: str | None = None  # litellm model id, e.g. "gpt-4.1"
    api_base: str | None = None
    temperature: float | None = 1.0
    max_tokens: int | None = None


@dataclass
class AgentConfig:
    """Agent loop configuration."""

    max_steps: int = 20
    cua_max_steps: int = 10
    wait_between_actions_ms: int = 1000
    highlight_cursor: bool = True
    system_instructions: str | None = None


@dataclass
class ReplayConfig:
    """Replay recording configuration."""

    enabled: bool = False
    path: str | None = None  # JSON-lines file; in-memory when unset


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0, 1, 2 (overrides level)
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    api: APIConfig = field(default_factory=APIConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    replay: ReplayConfig = field(default_factory=ReplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extra: dict[str, Any] = field(default_factory=dict)  # Unknown top-level keys
