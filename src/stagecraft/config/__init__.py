"""Configuration management for stagecraft.

Provides hierarchical YAML-based configuration with:
- System-level config (/etc/stagecraft/ or %PROGRAMDATA%)
- User-level config (~/.stagecraft/ or %APPDATA%)
- Project-level config ($project_root/.stagecraft/)
- Environment variable overrides (highest priority)

Example usage:
    from stagecraft.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.api.base_url)
    print(config.agent.max_steps)
"""

from stagecraft.config.loader import (
    deep_merge,
    get_config,
    load_config,
    reset_config,
)
from stagecraft.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from stagecraft.config.schema import (
    AgentConfig,
    APIConfig,
    Config,
    LLMConfig,
    LoggingConfig,
    ReplayConfig,
)
from stagecraft.config.secrets import (
    API_KEY_VAR,
    PROJECT_ID_VAR,
    clear_secret_cache,
    fetch_secret,
)

__all__ = [
    # Main API
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "deep_merge",
    # Schema types
    "APIConfig",
    "LLMConfig",
    "AgentConfig",
    "ReplayConfig",
    "LoggingConfig",
    # Secrets
    "API_KEY_VAR",
    "PROJECT_ID_VAR",
    "fetch_secret",
    "clear_secret_cache",
    # Paths
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
