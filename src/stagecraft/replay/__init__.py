"""Replay step types and sinks."""

from stagecraft.replay.log import JsonlReplayLog, ReplayLog, ReplayRecorder
from stagecraft.replay.types import (
    ActStep,
    BackStep,
    ForwardStep,
    GotoStep,
    ReplayAction,
    ReplayStep,
    ScrollStep,
    WaitStep,
    step_to_dict,
)

__all__ = [
    "ReplayRecorder",
    "ReplayLog",
    "JsonlReplayLog",
    "ReplayStep",
    "ReplayAction",
    "ActStep",
    "ScrollStep",
    "WaitStep",
    "GotoStep",
    "BackStep",
    "ForwardStep",
    "step_to_dict",
]
