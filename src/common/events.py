from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeAlias


@dataclass(frozen=True, slots=True)
class AssistantResponseStartEvent:
    step: int


@dataclass(frozen=True, slots=True)
class AssistantDeltaEvent:
    text: str


@dataclass(frozen=True, slots=True)
class ToolCallEvent:
    tool_call_id: str
    tool_name: str
    args: dict


@dataclass(frozen=True, slots=True)
class ToolResultEvent:
    tool_call_id: str
    tool_name: str
    result: dict


@dataclass(frozen=True, slots=True)
class StreamFinishedEvent:
    messages: list = field(default_factory=list)
    step_count: int = 0


Event: TypeAlias = (
    AssistantResponseStartEvent
    | AssistantDeltaEvent
    | ToolCallEvent
    | ToolResultEvent
    | StreamFinishedEvent
)
