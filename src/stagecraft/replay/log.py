"""Replay sinks.

The agent hands every ReplayStep to a recorder and keeps nothing itself.
``JsonlReplayLog`` appends one JSON object per line and takes a file lock
so several processes can record into the same log.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol, runtime_checkable

from filelock import FileLock

from stagecraft.logging import get_logger
from stagecraft.replay.types import ReplayStep, step_to_dict

log = get_logger("replay")


@runtime_checkable
class ReplayRecorder(Protocol):
    """Sink for replay steps."""

    @property
    def is_active(self) -> bool: ...

    def record(self, step: ReplayStep) -> None: ...


class ReplayLog:
    """In-memory recorder."""

    def __init__(self, active: bool = True) -> None:
        self._active = active
        self._steps: list[ReplayStep] = []

    @property
    def is_active(self) -> bool:
        return self._active

    def start(self) -> None:
        self._active = True

    def stop(self) -> None:
        self._active = False

    @property
    def steps(self) -> list[ReplayStep]:
        return list(self._steps)

    def record(self, step: ReplayStep) -> None:
        if not self._active:
            return
        self._steps.append(step)

    def clear(self) -> None:
        self._steps.clear()


class JsonlReplayLog:
    """Recorder that appends steps to a JSON-lines file."""

    def __init__(self, path: str | Path, active: bool = True) -> None:
        self._path = Path(path).expanduser()
        self._lock = FileLock(str(self._path) + ".lock")
        self._active = active

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_active(self) -> bool:
        return self._active

    def record(self, step: ReplayStep) -> None:
        if not self._active:
            return
        line = json.dumps(step_to_dict(step))
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            with open(self._path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        log.debug("Recorded %s step to %s", step.type, self._path)

    def read(self) -> list[dict]:
        """Load all recorded steps as dicts."""
        if not self._path.exists():
            return []
        with self._lock:
            with open(self._path, encoding="utf-8") as f:
                return [json.loads(line) for line in f if line.strip()]
