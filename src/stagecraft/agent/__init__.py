"""Agent step orchestration and computer-use action execution."""

from stagecraft.agent.actions import (
    TOOL_ACTION_TYPES,
    ActionType,
    map_tool_call_to_actions,
    parse_action_type,
)
from stagecraft.agent.cua_handler import ComputerUseOrchestrator
from stagecraft.agent.executor import (
    ActionExecutor,
    describe_pointer_action,
    describe_type_action,
    ensure_xpath,
)
from stagecraft.agent.factory import create_agent, create_recorder
from stagecraft.agent.handler import AgentStepOrchestrator, AgentStreamResult
from stagecraft.agent.hooks import invoke_hook
from stagecraft.agent.tools import create_tools
from stagecraft.agent.types import (
    ActionExecutionResult,
    AgentAction,
    AgentExecuteOptions,
    AgentHooks,
    AgentResult,
    AgentState,
    AgentUsage,
    StepEndInfo,
    StepStartInfo,
)

__all__ = [
    # Orchestrators
    "AgentStepOrchestrator",
    "ComputerUseOrchestrator",
    "AgentStreamResult",
    "create_agent",
    "create_recorder",
    # Execution
    "ActionExecutor",
    "ActionType",
    "TOOL_ACTION_TYPES",
    "map_tool_call_to_actions",
    "parse_action_type",
    "ensure_xpath",
    "describe_pointer_action",
    "describe_type_action",
    "create_tools",
    "invoke_hook",
    # Types
    "AgentAction",
    "AgentState",
    "AgentResult",
    "AgentUsage",
    "AgentExecuteOptions",
    "AgentHooks",
    "ActionExecutionResult",
    "StepStartInfo",
    "StepEndInfo",
]
