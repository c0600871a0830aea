"""Incremental decoder for streamed session responses.

The server answers every session operation with a sequence of records,
each a ``data: <json>`` line terminated by a blank line. Records are
handled strictly in arrival order: log records go to the log sink, an
``error`` system record raises, and the first ``finished`` system record
ends decoding with its ``result``.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

from pydantic import ValidationError

from stagecraft.errors import ResponseBodyError, ResponseParseError, ServerError
from stagecraft.logging import LogLine, LogSink, default_log_sink, get_logger
from stagecraft.remote.types import StreamEvent

log = get_logger("remote")

RECORD_SEPARATOR = "\n\n"
DATA_PREFIX = "data: "

# Server-side log lines that only make sense for local browsers
SUPPRESSED_LOG_MESSAGES = frozenset({"Connecting to local browser"})

_PENDING = object()


def parse_record(record: str) -> StreamEvent | None:
    """Decode one record. Returns None for records without a data prefix."""
    if not record.startswith(DATA_PREFIX):
        return None
    try:
        return StreamEvent.model_validate(json.loads(record[len(DATA_PREFIX) :]))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ResponseParseError(f"Failed to parse server response: {e}") from e


def _forward_log(event: StreamEvent, log_sink: LogSink) -> None:
    payload = event.data.get("message")
    line = LogLine.from_payload(payload)
    if line.message in SUPPRESSED_LOG_MESSAGES:
        return
    log_sink(line)


def _handle_event(event: StreamEvent, log_sink: LogSink) -> Any:
    if event.is_system:
        if event.status == "error":
            raise RuntimeError(str(event.data.get("error") or "Unknown server error"))
        if event.status == "finished":
            return event.data.get("result")
    elif event.is_log:
        _forward_log(event, log_sink)
    return _PENDING


async def decode_event_stream(
    chunks: AsyncIterator[str] | None,
    log_sink: LogSink | None = None,
) -> Any:
    """Consume a streamed response until its terminal record.

    Args:
        chunks: Decoded text chunks of the response body, or None when the
            response carried no body stream.
        log_sink: Receiver for forwarded server log lines.

    Returns:
        The ``result`` of the first ``finished`` system record.

    Raises:
        ResponseBodyError: ``chunks`` is None.
        ResponseParseError: A record was not valid JSON or not an event.
        RuntimeError: The server sent an ``error`` system record.
        ServerError: The stream ended without a ``finished`` record.
    """
    if chunks is None:
        raise ResponseBodyError()
    sink = log_sink or default_log_sink

    buffer = ""
    async for chunk in chunks:
        buffer += chunk
        *records, buffer = buffer.split(RECORD_SEPARATOR)
        for record in records:
            event = parse_record(record)
            if event is None:
                continue
            result = _handle_event(event, sink)
            if result is not _PENDING:
                return result

    # Last chance: a terminal record that arrived without its separator
    if buffer.strip():
        try:
            event = parse_record(buffer.strip())
        except ResponseParseError:
            log.warning("Incomplete data in final buffer")
        else:
            if event is not None and event.is_system and event.status == "finished":
                return event.data.get("result")

    raise ServerError("Stream ended without completion signal")
