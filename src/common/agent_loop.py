from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from common import llm
from common.events import (
    AssistantDeltaEvent,
    AssistantResponseStartEvent,
    Event,
    StreamFinishedEvent,
    ToolCallEvent,
    ToolResultEvent,
)
from common.ids import generate_id


@dataclass(frozen=True, slots=True)
class LoopConfig:
    model: str
    max_steps: int = 5
    temperature: float = 0.0
    max_tokens: int = 4096
    stream: bool = True


@dataclass(slots=True)
class StepResponse:
    content: str = ""
    tool_calls: list[dict[str, Any]] = field(default_factory=list)


def _stream_step(
    *,
    model: str,
    messages: list[dict],
    temperature: float,
    max_tokens: int,
    tools: list[dict] | None,
) -> Iterator[AssistantDeltaEvent]:
    stream = llm.completion(
        model=model,
        messages=messages,
        stream=True,
        tools=tools,
        tool_choice="auto" if tools else None,
        temperature=temperature,
        max_tokens=max_tokens,
    )

    accumulated_content = ""
    accumulated_tool_calls: dict[int, dict[str, Any]] = {}

    for chunk in stream:
        if not chunk.choices:
            continue
        delta = chunk.choices[0].delta

        if getattr(delta, "content", None):
            accumulated_content += delta.content
            yield AssistantDeltaEvent(text=delta.content)

        if getattr(delta, "tool_calls", None):
            for tc in delta.tool_calls:
                idx = tc.index

                if idx not in accumulated_tool_calls:
                    accumulated_tool_calls[idx] = {
                        "id": "",
                        "type": "function",
                        "function": {"name": "", "arguments": ""},
                    }

                if tc.id:
                    accumulated_tool_calls[idx]["id"] = tc.id
                if getattr(tc, "function", None):
                    if tc.function.name:
                        accumulated_tool_calls[idx]["function"]["name"] = tc.function.name
                    if tc.function.arguments:
                        accumulated_tool_calls[idx]["function"]["arguments"] += tc.function.arguments

    return StepResponse(
        content=accumulated_content,
        tool_calls=[accumulated_tool_calls[idx] for idx in sorted(accumulated_tool_calls)],
    )


def _complete_step(
    *,
    model: str,
    messages: list[dict],
    temperature: float,
    max_tokens: int,
    tools: list[dict] | None,
) -> StepResponse:
    completion = llm.completion(
        model=model,
        messages=messages,
        stream=False,
        tools=tools,
        tool_choice="auto" if tools else None,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    message = completion.choices[0].message
    tool_calls = [
        {
            "id": tc.id,
            "type": "function",
            "function": {"name": tc.function.name, "arguments": tc.function.arguments},
        }
        for tc in (getattr(message, "tool_calls", None) or [])
    ]
    return StepResponse(content=message.content or "", tool_calls=tool_calls)


def _parse_arguments(raw: str) -> dict:
    if not raw:
        return {}
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError("tool arguments must be a JSON object")
    return parsed


def stream_loop(
    messages: list[dict],
    tools: list[dict],
    execute_tool: Callable[[str, dict], dict],
    config: LoopConfig,
) -> Iterator[Event]:
    """Run up to ``config.max_steps`` model calls, executing tool calls in between.

    Yields text deltas and tool events as they happen and always finishes with a
    ``StreamFinishedEvent`` carrying every message produced during the run. Each
    produced message has a fresh ``id``; the dicts sent back to the model do not.
    """
    api_messages = list(messages)
    produced: list[dict] = []
    tools_arg = tools or None
    step = 0

    for step in range(1, config.max_steps + 1):
        yield AssistantResponseStartEvent(step=step)

        step_kwargs = dict(
            model=config.model,
            messages=api_messages,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            tools=tools_arg,
        )
        if config.stream:
            response = yield from _stream_step(**step_kwargs)
        else:
            response = _complete_step(**step_kwargs)
            if response.content:
                yield AssistantDeltaEvent(text=response.content)

        assistant: dict[str, Any] = {"role": "assistant", "content": response.content or None}
        if response.tool_calls:
            assistant["tool_calls"] = response.tool_calls
        api_messages.append(assistant)
        produced.append({**assistant, "id": generate_id()})

        if not response.tool_calls:
            break

        for tool_call in response.tool_calls:
            tool_name = tool_call["function"]["name"]
            try:
                tool_args = _parse_arguments(tool_call["function"]["arguments"])
            except ValueError as e:
                result = {"success": False, "error": f"Invalid tool arguments: {e}"}
            else:
                yield ToolCallEvent(
                    tool_call_id=tool_call["id"],
                    tool_name=tool_name,
                    args=tool_args,
                )
                result = execute_tool(tool_name, tool_args)

            yield ToolResultEvent(
                tool_call_id=tool_call["id"],
                tool_name=tool_name,
                result=result,
            )
            tool_message = {
                "role": "tool",
                "tool_call_id": tool_call["id"],
                "name": tool_name,
                "content": json.dumps(result),
            }
            api_messages.append(tool_message)
            produced.append({**tool_message, "id": generate_id()})

    yield StreamFinishedEvent(messages=produced, step_count=step)
