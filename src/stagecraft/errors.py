"""Exception hierarchy for stagecraft.

Protocol errors (everything raised by the remote client) propagate to the
caller unchanged. Orchestration errors are caught at the run boundary and
turned into a failed AgentResult, except for errors raised while preparing
a run.
"""

from __future__ import annotations


class StagecraftError(Exception):
    """Base class for all stagecraft errors."""


class APIError(StagecraftError):
    """A well-formed API response explicitly signalled failure."""


class UnauthorizedError(APIError):
    """The API rejected the credentials (HTTP 401)."""

    def __init__(self, message: str = "Unauthorized. Ensure you provided a valid API key.") -> None:
        super().__init__(message)


class HttpError(StagecraftError):
    """The API returned an unexpected HTTP status."""

    def __init__(self, message: str, status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class ResponseBodyError(StagecraftError):
    """A successful response carried no body stream to read."""

    def __init__(self, message: str = "Response body is missing") -> None:
        super().__init__(message)


class ResponseParseError(StagecraftError):
    """A streamed record could not be decoded."""


class ServerError(StagecraftError):
    """The server closed the stream without a terminal event."""


class SessionNotStartedError(APIError):
    """A remote operation was attempted before a session existed."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"No active session: call start_session() before {operation}()")
        self.operation = operation


class MissingModelConfigurationError(StagecraftError):
    """The orchestrator was started without a usable model client."""

    def __init__(self) -> None:
        super().__init__(
            "No LLM client configured. Pass an LLMClient that provides "
            "get_language_model() to run an agent."
        )


class ActionExecutionError(StagecraftError):
    """A browser action failed while being executed."""

    def __init__(self, action_type: str, message: str) -> None:
        super().__init__(f"Error executing action {action_type}: {message}")
        self.action_type = action_type


class ExperimentalNotConfiguredError(StagecraftError):
    """A feature was requested that the remote API does not support yet."""

    def __init__(self, feature: str) -> None:
        super().__init__(f"{feature} are not supported when running against the remote API")
        self.feature = feature
