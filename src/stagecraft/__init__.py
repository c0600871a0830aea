"""Stagecraft: remote browser sessions and a step-bounded browser agent."""

from stagecraft._version import __version__

# Public API
from stagecraft.agent import (
    ActionExecutor,
    AgentAction,
    AgentExecuteOptions,
    AgentHooks,
    AgentResult,
    AgentStepOrchestrator,
    AgentStreamResult,
    ComputerUseOrchestrator,
    create_agent,
)
from stagecraft.config import Config, get_config, load_config
from stagecraft.core import LiteLLMClient, LLMClient, Message, Role
from stagecraft.errors import (
    ActionExecutionError,
    APIError,
    ExperimentalNotConfiguredError,
    HttpError,
    MissingModelConfigurationError,
    ResponseBodyError,
    ResponseParseError,
    ServerError,
    SessionNotStartedError,
    StagecraftError,
    UnauthorizedError,
)
from stagecraft.logging import LogLine, setup_logging
from stagecraft.metrics import FunctionName, MetricsAggregator, UsageMetrics
from stagecraft.remote import SessionProtocolClient, StartSessionParams, StartSessionResult

__all__ = [
    "__version__",
    # Remote sessions
    "SessionProtocolClient",
    "StartSessionParams",
    "StartSessionResult",
    # Agent
    "AgentStepOrchestrator",
    "ComputerUseOrchestrator",
    "AgentStreamResult",
    "ActionExecutor",
    "AgentAction",
    "AgentExecuteOptions",
    "AgentHooks",
    "AgentResult",
    "create_agent",
    # Config
    "Config",
    "load_config",
    "get_config",
    # LLM
    "LLMClient",
    "LiteLLMClient",
    "Message",
    "Role",
    # Metrics
    "FunctionName",
    "MetricsAggregator",
    "UsageMetrics",
    # Logging
    "LogLine",
    "setup_logging",
    # Errors
    "StagecraftError",
    "APIError",
    "UnauthorizedError",
    "HttpError",
    "ResponseBodyError",
    "ResponseParseError",
    "ServerError",
    "SessionNotStartedError",
    "MissingModelConfigurationError",
    "ActionExecutionError",
    "ExperimentalNotConfiguredError",
]
