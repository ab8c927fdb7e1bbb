from typing import Iterable, Sequence

from shikai.conversations.schema import AssistantMessage, CacheHint, Message

MERGEABLE_ROLES = ("assistant", "tool")


def strip_cache_hints(history: Iterable[Message]) -> None:
    for message in history:
        if isinstance(message, AssistantMessage) and message.cache_hint is not None:
            message.cache_hint = None


def _new_messages(incoming: Sequence[Message], known_ids: set[str]) -> list[tuple[int, Message]]:
    seen: set[str] = set()
    accepted: list[tuple[int, Message]] = []
    for index, message in enumerate(incoming):
        if message.role not in MERGEABLE_ROLES or not message.id:
            continue
        if message.id in known_ids or message.id in seen:
            continue
        seen.add(message.id)
        accepted.append((index, message))
    return accepted


def merge_final_messages(
    history: list[Message],
    incoming: Sequence[Message],
    known_ids: set[str],
    rotate_cache_hint: bool = True,
) -> list[Message]:
    """Append each new assistant/tool message from ``incoming`` exactly once.

    Messages without an id, with an id already in ``known_ids``, or with any other
    role are dropped. With ``rotate_cache_hint`` the hint is moved off older assistant
    turns and onto the last incoming message when that message is a new assistant
    turn; the system message keeps its hint. A batch that adds nothing leaves the
    history untouched, so replaying a batch is a no-op. Returns the appended messages.
    """
    accepted = _new_messages(incoming, known_ids)
    if not accepted:
        return []

    if rotate_cache_hint:
        strip_cache_hints(history)

    last_index = len(incoming) - 1
    appended: list[Message] = []
    for index, message in accepted:
        known_ids.add(message.id)
        if rotate_cache_hint and index == last_index and isinstance(message, AssistantMessage):
            message.cache_hint = CacheHint()
        history.append(message)
        appended.append(message)
    return appended
