"""Replayable step records produced while an agent acts on a page."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ReplayAction:
    """A locator-bound action that can be re-run without a model."""

    selector: str
    description: str
    method: str
    arguments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ActStep:
    """One or more locator-bound actions performed for one agent action."""

    instruction: str
    actions: tuple[ReplayAction, ...]
    action_description: str
    message: str | None = None
    type: str = field(default="act", init=False)


@dataclass(frozen=True, slots=True)
class ScrollStep:
    delta_x: float
    delta_y: float
    anchor: tuple[int, int] | None = None
    type: str = field(default="scroll", init=False)


@dataclass(frozen=True, slots=True)
class WaitStep:
    time_ms: int
    type: str = field(default="wait", init=False)


@dataclass(frozen=True, slots=True)
class GotoStep:
    url: str
    type: str = field(default="goto", init=False)


@dataclass(frozen=True, slots=True)
class BackStep:
    type: str = field(default="back", init=False)


@dataclass(frozen=True, slots=True)
class ForwardStep:
    type: str = field(default="forward", init=False)


ReplayStep = ActStep | ScrollStep | WaitStep | GotoStep | BackStep | ForwardStep


def step_to_dict(step: ReplayStep) -> dict[str, Any]:
    """Serialize a step to a JSON-friendly dict, dropping unset fields."""
    return {k: v for k, v in asdict(step).items() if v is not None}
