"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Cascading merge of system, user and project files
- Environment variable overrides
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from stagecraft.config.paths import get_config_paths
from stagecraft.config.schema import (
    DEFAULT_API_URL,
    AgentConfig,
    APIConfig,
    Config,
    LLMConfig,
    LoggingConfig,
    ReplayConfig,
)

_log = logging.getLogger("stagecraft.config")

_cached_config: Config | None = None

_KNOWN_KEYS = {"api", "llm", "agent", "replay", "logging"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning an empty dict if missing or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Nested dicts merge recursively, lists and scalars are replaced, and
    None in ``override`` leaves the base value in place.
    """
    result = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result


def env_overrides() -> dict[str, Any]:
    """Build a config dict from environment variables.

    API keys are NOT loaded here; use fetch_secret() for secrets.
    """
    overrides: dict[str, Any] = {}

    api_url = os.environ.get("STAGECRAFT_API_URL")
    if api_url:
        overrides.setdefault("api", {})["base_url"] = api_url

    model = os.environ.get("STAGECRAFT_MODEL")
    if model:
        overrides.setdefault("llm", {})["model"] = model

    log_path = os.environ.get("STAGECRAFT_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    return overrides


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert a merged dict to the typed Config dataclass."""
    api_data = data.get("api") or {}
    api = APIConfig(
        base_url=str(api_data.get("base_url") or DEFAULT_API_URL).rstrip("/"),
        timeout=float(api_data.get("timeout", 300.0)),
        reroute_unavailable_sessions=bool(api_data.get("reroute_unavailable_sessions", False)),
    )

    llm_data = data.get("llm") or {}
    llm = LLMConfig(
        model=llm_data.get("model"),
        api_base=llm_data.get("api_base"),
        temperature=llm_data.get("temperature", 1.0),
        max_tokens=llm_data.get("max_tokens"),
    )

    agent_data = data.get("agent") or {}
    agent = AgentConfig(
        max_steps=int(agent_data.get("max_steps", 20)),
        cua_max_steps=int(agent_data.get("cua_max_steps", 10)),
        wait_between_actions_ms=int(agent_data.get("wait_between_actions_ms", 1000)),
        highlight_cursor=bool(agent_data.get("highlight_cursor", True)),
        system_instructions=agent_data.get("system_instructions"),
    )

    replay_data = data.get("replay") or {}
    replay = ReplayConfig(
        enabled=bool(replay_data.get("enabled", False)),
        path=replay_data.get("path"),
    )

    logging_data = data.get("logging") or {}
    logging_config = LoggingConfig(
        level=logging_data.get("level"),
        verbose=logging_data.get("verbose"),
        file=logging_data.get("file"),
    )

    extra = {k: v for k, v in data.items() if k not in _KNOWN_KEYS}

    return Config(
        api=api,
        llm=llm,
        agent=agent,
        replay=replay,
        logging=logging_config,
        extra=extra,
    )


def load_config(project_root: str | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config ($project_root/.stagecraft/config.yaml)
    3. User config
    4. System config

    Only the global config (no project_root) is cached.
    """
    global _cached_config

    if _cached_config is not None and not reload and project_root is None:
        return _cached_config

    merged: dict[str, Any] = {}
    for path in get_config_paths(project_root):
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            merged = deep_merge(merged, config_data)

    merged = deep_merge(merged, env_overrides())
    config = dict_to_config(merged)

    if project_root is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config (used by tests and reloads)."""
    global _cached_config
    _cached_config = None
