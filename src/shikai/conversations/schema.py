from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class CacheHint(BaseModel):
    type: Literal["ephemeral"] = "ephemeral"


Content = Union[str, list[dict[str, Any]]]


class _BaseMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SystemMessage(_BaseMessage):
    role: Literal["system"] = "system"
    content: str
    cache_hint: CacheHint | None = None


class UserMessage(_BaseMessage):
    role: Literal["user"] = "user"
    content: Content


class AssistantMessage(_BaseMessage):
    role: Literal["assistant"] = "assistant"
    content: Content | None = None
    tool_calls: list[dict[str, Any]] | None = None
    id: str | None = None
    cache_hint: CacheHint | None = None


class ToolMessage(_BaseMessage):
    role: Literal["tool"] = "tool"
    content: Content
    tool_call_id: str
    name: str | None = None
    id: str | None = None


Message = Annotated[
    Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage],
    Field(discriminator="role"),
]

MESSAGE_ADAPTER = TypeAdapter(Message)
HISTORY_ADAPTER = TypeAdapter(list[Message])


def parse_message(data: dict[str, Any]) -> Message:
    return MESSAGE_ADAPTER.validate_python(data)


def parse_history(data: Any) -> list[Message]:
    return HISTORY_ADAPTER.validate_python(data)


def dump_history(messages: list[Message]) -> list[dict[str, Any]]:
    return [message.model_dump(mode="json", exclude_none=True) for message in messages]


def content_text(content: Content | None) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    return "".join(
        part.get("text", "") if part.get("type") == "text" else f"[{part.get('type')}]"
        for part in content
    )


class ConversationMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    display_id: int
    timestamp: str
    preview: str
    message_count: int
    file_name: str
    last_modified: datetime
