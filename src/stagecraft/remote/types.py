"""Wire types for the remote session API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base model for wire types with populate_by_name enabled."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class StartSessionParams(WireModel):
    """Parameters for POST /sessions/start.

    ``model_api_key`` travels in a header, never in the body.
    """

    model_name: str = Field(alias="modelName")
    model_api_key: str | None = Field(default=None, alias="modelApiKey", exclude=True)
    dom_settle_timeout_ms: int | None = Field(default=None, alias="domSettleTimeoutMs")
    verbose: int | None = None
    system_prompt: str | None = Field(default=None, alias="systemPrompt")
    self_heal: bool | None = Field(default=None, alias="selfHeal")
    browserbase_session_create_params: dict[str, Any] | None = Field(
        default=None, alias="browserbaseSessionCreateParams"
    )
    browserbase_session_id: str | None = Field(default=None, alias="browserbaseSessionID")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class StartSessionResult(WireModel):
    session_id: str | None = Field(default=None, alias="sessionId")
    available: bool = False


class StartSessionResponse(WireModel):
    success: bool = True
    data: StartSessionResult | None = None
    message: str | None = None


class StreamEvent(WireModel):
    """One decoded ``data:`` record of a streamed response."""

    type: str
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_system(self) -> bool:
        return self.type == "system"

    @property
    def is_log(self) -> bool:
        return self.type == "log"

    @property
    def status(self) -> str | None:
        return self.data.get("status")


class ReplayMetricsData(WireModel):
    pages: list[dict[str, Any]] = Field(default_factory=list)


class ReplayMetricsResponse(WireModel):
    success: bool = False
    data: ReplayMetricsData | None = None
    error: str | None = None
