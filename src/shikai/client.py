import logging
from typing import Any, Iterator

from common import llm
from common.agent_loop import LoopConfig, stream_loop
from common.events import Event, StreamFinishedEvent
from shikai.config import AgentConfig
from shikai.conversations.schema import Message, parse_message
from shikai.tools import ToolRegistry

logger = logging.getLogger(__name__)

CACHE_CONTROL = {"type": "ephemeral"}


def _with_cache_control(content: Any) -> Any:
    if isinstance(content, str):
        if not content:
            return content
        return [{"type": "text", "text": content, "cache_control": dict(CACHE_CONTROL)}]
    if isinstance(content, list) and content:
        parts = [dict(part) for part in content]
        parts[-1]["cache_control"] = dict(CACHE_CONTROL)
        return parts
    return content


def to_api_messages(history: list[Message], prompt_caching: bool = True) -> list[dict]:
    """Render history for the completion API.

    Ids and cache hints are local bookkeeping; a hint becomes a ``cache_control``
    marker on the message content when ``prompt_caching`` is enabled.
    """
    api_messages = []
    for message in history:
        data = message.model_dump(mode="json", exclude_none=True, exclude={"id", "cache_hint"})
        if prompt_caching and getattr(message, "cache_hint", None) is not None:
            data["content"] = _with_cache_control(data.get("content"))
        api_messages.append(data)
    return api_messages


class ModelClient:
    def __init__(self, config: AgentConfig, prompt_caching: bool = True):
        self.config = config
        self.prompt_caching = prompt_caching and llm.supports_prompt_caching(config.model)

    def generate(self, prompt: str, max_tokens: int = 50) -> str:
        return llm.completion_text(
            model=self.config.model,
            prompt=prompt,
            max_tokens=max_tokens,
            temperature=self.config.temperature,
        )

    def stream(
        self,
        history: list[Message],
        tools: ToolRegistry,
        max_steps: int,
    ) -> Iterator[Event]:
        """Lazily yield text and tool events, ending with the batch of new messages.

        The final ``StreamFinishedEvent`` carries validated ``Message`` objects.
        """
        events = stream_loop(
            messages=to_api_messages(history, self.prompt_caching),
            tools=tools.get_tool_schemas(),
            execute_tool=tools.execute_tool,
            config=LoopConfig(
                model=self.config.model,
                max_steps=max_steps,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                stream=self.config.stream,
            ),
        )
        for event in events:
            if isinstance(event, StreamFinishedEvent):
                messages = [parse_message(data) for data in event.messages]
                logger.debug(f"Model run finished after {event.step_count} step(s)")
                yield StreamFinishedEvent(messages=messages, step_count=event.step_count)
            else:
                yield event
