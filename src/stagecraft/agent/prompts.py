"""System prompts for the agent orchestrators."""

from __future__ import annotations

from datetime import datetime, timezone

_DEFAULT_PROMPT = """\
You are a web automation assistant operating a live browser page.

Your goal: {instruction}

Work step by step. Each step, look at the current state of the page and
call the tool that makes the most progress towards the goal. Prefer one
precise action per step over several guesses.

When the goal has been achieved, or cannot be achieved, call the `close`
tool. Set `taskComplete` to true only if the goal was actually achieved,
and explain why in `reasoning`.

Today's date is {date}."""

_CUSTOM_PROMPT = """\
{system_instructions}

Your current goal: {instruction}

When you are done, call the `close` tool with `taskComplete` and a short
`reasoning`."""

_COMPUTER_USE_PROMPT = """\
You are controlling a web browser through mouse and keyboard actions on
screen coordinates. The viewport is what you can see; scroll to see more.

Your goal: {instruction}

Take one action at a time with the tools provided. After every action
you receive a screenshot of the page; call `screenshot` to look again.
Do not ask the user for confirmation.
Call `close` with `taskComplete` set to true once the goal is done, or
false if it cannot be done, and give your `reasoning`.

Today's date is {date}."""


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def build_system_prompt(instruction: str, system_instructions: str | None = None) -> str:
    if system_instructions:
        return _CUSTOM_PROMPT.format(
            system_instructions=system_instructions.strip(), instruction=instruction
        )
    return _DEFAULT_PROMPT.format(instruction=instruction, date=_today())


def _page_context(viewport: tuple[int, int] | None, url: str | None) -> str:
    lines = []
    if viewport:
        width, height = viewport
        lines.append(
            f"The viewport is {width}x{height} pixels. Coordinates are measured "
            "from its top-left corner."
        )
    if url:
        lines.append(f"The page is currently at {url}.")
    return "\n\n" + "\n".join(lines) if lines else ""


def build_computer_use_prompt(
    instruction: str,
    system_instructions: str | None = None,
    *,
    viewport: tuple[int, int] | None = None,
    url: str | None = None,
) -> str:
    """Prompt for the coordinate-level agent.

    ``viewport`` and ``url`` describe the page the run starts on.
    """
    if system_instructions:
        prompt = build_system_prompt(instruction, system_instructions)
    else:
        prompt = _COMPUTER_USE_PROMPT.format(instruction=instruction, date=_today())
    return prompt + _page_context(viewport, url)
