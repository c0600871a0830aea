"""Remote session API client."""

from stagecraft.remote.client import SessionProtocolClient
from stagecraft.remote.stream import decode_event_stream, parse_record
from stagecraft.remote.types import (
    ReplayMetricsResponse,
    StartSessionParams,
    StartSessionResponse,
    StartSessionResult,
    StreamEvent,
)

__all__ = [
    "SessionProtocolClient",
    "decode_event_stream",
    "parse_record",
    "StartSessionParams",
    "StartSessionResult",
    "StartSessionResponse",
    "StreamEvent",
    "ReplayMetricsResponse",
]
