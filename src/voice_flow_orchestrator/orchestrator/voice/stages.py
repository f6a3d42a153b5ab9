"""Conversation stages of a call.

A stage swaps the voice agent's system prompt mid-call. Flow tools are only
offered in stages that set `include_flows`.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Stage:
    name: str
    description: str
    system_prompt: str
    tools: tuple[str, ...] = ()
    include_flows: bool = False


INTRODUCTION_PROMPT = """\
You are receiving a phone call. You are a helpful assistant. Do not say your name. \
Be friendly and concise. The first thing you say should be "What's up?".

You have access to tools to help achieve the caller's goals.
Use the hangUp tool to end the call."""

STAGES: dict[str, Stage] = {
    "Introduction": Stage(
        name="Introduction",
        description="The introduction stage of the conversation",
        system_prompt=INTRODUCTION_PROMPT,
        include_flows=True,
    ),
    "Closing": Stage(
        name="Closing",
        description="The closing stage of the conversation.",
        system_prompt="Say goodbye to the caller.",
    ),
}


class UnknownStageError(ValueError):
    pass


def get_stage(name: str) -> Stage | None:
    return STAGES.get(name)


def require_stage(name: str) -> Stage:
    stage = STAGES.get(name)
    if stage is None:
        raise UnknownStageError(
            f"Unknown stage {name!r}; expected one of: {', '.join(list_stages())}"
        )
    return stage


def list_stages() -> list[str]:
    return list(STAGES)
