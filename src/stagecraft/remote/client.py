"""Client for the remote session API.

A ``SessionProtocolClient`` owns one ``httpx.AsyncClient`` for its whole
lifetime so cookies (and with them session affinity) persist across
requests. Protocol failures are raised to the caller unchanged.

Example:
    async with SessionProtocolClient(api_key, project_id) as client:
        await client.start_session(
            StartSessionParams(model_name="gpt-4.1", model_api_key=key)
        )
        await client.goto("https://example.com")
        result = await client.act("click the login button")
        await client.end_session()
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import BaseModel

from stagecraft._version import __version__
from stagecraft.agent.types import AgentResult
from stagecraft.config import API_KEY_VAR, PROJECT_ID_VAR, Config, fetch_secret, get_config
from stagecraft.config.schema import DEFAULT_API_URL
from stagecraft.errors import (
    APIError,
    ExperimentalNotConfiguredError,
    HttpError,
    SessionNotStartedError,
    UnauthorizedError,
)
from stagecraft.logging import LogSink, emit
from stagecraft.metrics import UsageMetrics, aggregate_replay_usage
from stagecraft.remote.stream import decode_event_stream
from stagecraft.remote.types import (
    ReplayMetricsResponse,
    StartSessionParams,
    StartSessionResponse,
    StartSessionResult,
)

DEFAULT_TIMEOUT = 300.0

# Only this hosted region is served by the remote API
SUPPORTED_REGION = "us-west-2"


def _strip_page(options: dict[str, Any] | None) -> dict[str, Any]:
    return {k: v for k, v in (options or {}).items() if k != "page"}


class SessionProtocolClient:
    """Session lifecycle and operation dispatch against the remote API."""

    def __init__(
        self,
        api_key: str,
        project_id: str,
        *,
        base_url: str | None = None,
        logger: LogSink | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        reroute_unavailable_sessions: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._logger = logger
        self._reroute_unavailable_sessions = reroute_unavailable_sessions
        self._session_id: str | None = None
        self._model_api_key: str | None = None

        # Resolved once; only session id, model key and x-sent-at vary
        self._static_headers = {
            "x-bb-api-key": api_key,
            "x-bb-project-id": project_id,
            "x-stream-response": "true",
            "x-language": "python",
            "x-sdk-version": __version__,
        }
        base_url = base_url or os.environ.get("STAGECRAFT_API_URL") or DEFAULT_API_URL
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: Config | None = None,
        *,
        logger: LogSink | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> SessionProtocolClient:
        """Build a client from configuration and secrets.

        Credentials come from ``BROWSERBASE_API_KEY`` and
        ``BROWSERBASE_PROJECT_ID`` (environment or ``.env.secrets``).
        """
        config = config or get_config()
        api_key = fetch_secret(API_KEY_VAR)
        project_id = fetch_secret(PROJECT_ID_VAR)
        if not api_key or not project_id:
            raise APIError(f"{API_KEY_VAR} and {PROJECT_ID_VAR} must be set")
        return cls(
            api_key,
            project_id,
            base_url=config.api.base_url,
            logger=logger,
            timeout=config.api.timeout,
            reroute_unavailable_sessions=config.api.reroute_unavailable_sessions,
            transport=transport,
        )

    @property
    def session_id(self) -> str | None:
        return self._session_id

    async def __aenter__(self) -> SessionProtocolClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _log(self, message: str, level: int = 1) -> None:
        emit(self._logger, "api", message, level)

    def _headers(self) -> dict[str, str]:
        headers = dict(self._static_headers)
        headers["x-sent-at"] = datetime.now(timezone.utc).isoformat()
        if self._session_id:
            headers["x-bb-session-id"] = self._session_id
        if self._model_api_key:
            headers["x-model-api-key"] = self._model_api_key
        return headers

    def _require_session(self, operation: str) -> str:
        if not self._session_id:
            raise SessionNotStartedError(operation)
        return self._session_id

    # -- session lifecycle --------------------------------------------------

    async def start_session(self, params: StartSessionParams) -> StartSessionResult:
        """Create a hosted session and remember its id.

        Raises:
            APIError: No model API key, or the server reported failure.
            UnauthorizedError: The API key was rejected.
            HttpError: Any other non-200 status.
        """
        if not params.model_api_key:
            raise APIError("model_api_key is required")
        self._model_api_key = params.model_api_key

        create_params = params.browserbase_session_create_params or {}
        region = create_params.get("region")
        if region and region != SUPPORTED_REGION:
            self._log(f"Region {region} is not served remotely; falling back to a local session")
            return StartSessionResult(session_id=params.browserbase_session_id, available=False)

        response = await self._http.post(
            "/sessions/start", json=params.to_wire(), headers=self._headers()
        )
        if response.status_code == 401:
            raise UnauthorizedError()
        if response.status_code != 200:
            self._log(f"Session start failed with status {response.status_code}", 0)
            raise HttpError(
                f"Unknown error: {response.status_code}",
                status=response.status_code,
                body=response.text,
            )

        payload = StartSessionResponse.model_validate(response.json())
        if not payload.success:
            raise APIError(payload.message or "Unknown error")

        if payload.data is None:
            raise APIError("Missing session data in start response")
        result = payload.data
        self._session_id = result.session_id
        if (
            self._reroute_unavailable_sessions
            and not result.available
            and params.browserbase_session_id
        ):
            self._log(
                f"Session {result.session_id} unavailable; using {params.browserbase_session_id}"
            )
            self._session_id = params.browserbase_session_id
            result = result.model_copy(update={"session_id": params.browserbase_session_id})
        if self._session_id is None:
            raise APIError("Missing session id in start response")
        return result

    async def end_session(self) -> httpx.Response:
        """End the session. The response is returned unparsed."""
        session_id = self._require_session("end_session")
        return await self._http.post(f"/sessions/{session_id}/end", headers=self._headers())

    # -- operations ---------------------------------------------------------

    async def dispatch(
        self,
        method: str,
        args: dict[str, Any],
        params: dict[str, Any] | None = None,
    ) -> Any:
        """POST an operation and decode its streamed result.

        Args:
            method: Wire operation name (act, extract, observe, navigate, agentExecute)
            args: JSON request body
            params: Optional query parameters; None values are dropped

        Returns:
            The ``result`` of the terminal ``finished`` event.
        """
        session_id = self._require_session(method)
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}

        async with self._http.stream(
            "POST",
            f"/sessions/{session_id}/{method}",
            json=args,
            params=query,
            headers=self._headers(),
        ) as response:
            if not response.is_success:
                body = (await response.aread()).decode("utf-8", errors="replace")
                raise HttpError(
                    f"HTTP error! status: {response.status_code}, body: {body}",
                    status=response.status_code,
                    body=body,
                )
            chunks = response.aiter_text() if response.stream is not None else None
            return await decode_event_stream(chunks, self._logger)

    async def act(
        self,
        action: str,
        options: dict[str, Any] | None = None,
        frame_id: str | None = None,
    ) -> Any:
        args: dict[str, Any] = {"input": action}
        if (opts := _strip_page(options)):
            args["options"] = opts
        if frame_id:
            args["frameId"] = frame_id
        return await self.dispatch("act", args)

    async def extract(
        self,
        instruction: str | None = None,
        schema: dict[str, Any] | type[BaseModel] | None = None,
        options: dict[str, Any] | None = None,
        frame_id: str | None = None,
    ) -> Any:
        args: dict[str, Any] = {}
        if instruction is not None:
            args["instruction"] = instruction
        if isinstance(schema, type) and issubclass(schema, BaseModel):
            args["schema"] = schema.model_json_schema()
        elif schema is not None:
            args["schema"] = schema
        if (opts := _strip_page(options)):
            args["options"] = opts
        if frame_id:
            args["frameId"] = frame_id
        return await self.dispatch("extract", args)

    async def observe(
        self,
        instruction: str | None = None,
        options: dict[str, Any] | None = None,
        frame_id: str | None = None,
    ) -> Any:
        args: dict[str, Any] = {}
        if instruction is not None:
            args["instruction"] = instruction
        if (opts := _strip_page(options)):
            args["options"] = opts
        if frame_id:
            args["frameId"] = frame_id
        return await self.dispatch("observe", args)

    async def goto(
        self,
        url: str,
        options: dict[str, Any] | None = None,
        frame_id: str | None = None,
    ) -> Any:
        args: dict[str, Any] = {"url": url}
        if (opts := _strip_page(options)):
            args["options"] = opts
        if frame_id:
            args["frameId"] = frame_id
        return await self.dispatch("navigate", args)

    async def agent_execute(
        self,
        agent_config: dict[str, Any],
        execute_options: dict[str, Any] | str,
        frame_id: str | None = None,
    ) -> AgentResult:
        """Run a hosted agent and return its result.

        Raises:
            ExperimentalNotConfiguredError: ``agent_config`` names integrations.
        """
        if agent_config.get("integrations"):
            raise ExperimentalNotConfiguredError("MCP integrations")
        if isinstance(execute_options, str):
            execute_options = {"instruction": execute_options}

        args: dict[str, Any] = {
            "agentConfig": agent_config,
            "executeOptions": _strip_page(execute_options),
        }
        if frame_id:
            args["frameId"] = frame_id
        result = await self.dispatch("agentExecute", args)
        return AgentResult.from_dict(result or {})

    # -- metrics ------------------------------------------------------------

    async def get_replay_metrics(self) -> UsageMetrics:
        """Fetch the session replay and fold its token usage by category."""
        session_id = self._require_session("get_replay_metrics")
        response = await self._http.get(f"/sessions/{session_id}/replay", headers=self._headers())
        if response.status_code != 200:
            self._log(f"Replay metrics request failed with status {response.status_code}", 0)
            raise HttpError(
                f"Failed to fetch metrics with status {response.status_code}: {response.text}",
                status=response.status_code,
                body=response.text,
            )

        payload = ReplayMetricsResponse.model_validate(response.json())
        if not payload.success:
            raise APIError(f"Failed to fetch metrics: {payload.error or 'Unknown error'}")
        pages = payload.data.pages if payload.data else []
        return aggregate_replay_usage(pages)
