import json
import logging
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from common.jsonio import atomic_write_json
from shikai.conversations.ids import FILE_PREFIX, FILE_SUFFIX, candidate_id_from_file_name
from shikai.conversations.naming import extract_title_from_file_name
from shikai.conversations.schema import (
    ConversationMetadata,
    Message,
    content_text,
    dump_history,
    parse_history,
)

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 60


class ConversationLoadError(Exception):
    pass


def count_turns(messages: list[Message]) -> int:
    return sum(1 for message in messages if message.role in ("user", "assistant"))


def _conversation_files(log_dir: Path) -> list[Path]:
    if not log_dir.is_dir():
        return []
    return [path for path in log_dir.glob(f"{FILE_PREFIX}*{FILE_SUFFIX}") if path.is_file()]


def load_conversation(path: str | Path) -> list[Message]:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return parse_history(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise ConversationLoadError(f"Cannot load {path.name}: {e}") from e


def save_conversation(path: str | Path, messages: list[Message]) -> None:
    atomic_write_json(path, dump_history(messages))


def _preview(file_name: str, messages: list[Message]) -> str:
    title = extract_title_from_file_name(file_name)
    if title:
        return title
    for message in reversed(messages):
        if message.role == "user":
            text = content_text(message.content)
            return text[:PREVIEW_CHARS] or "No messages"
    return "No messages"


def list_conversations(log_dir: str | Path, limit: int = 10) -> list[ConversationMetadata]:
    """List the ``limit`` most recently modified conversations, newest first.

    Files that cannot be read or validated are skipped; ``display_id`` numbers the
    surviving entries from 1 and is only meaningful for this listing.
    """
    stamped: list[tuple[float, Path]] = []
    for path in _conversation_files(Path(log_dir)):
        try:
            stamped.append((path.stat().st_mtime, path))
        except OSError:
            continue
    stamped.sort(key=lambda item: item[0], reverse=True)

    entries: list[ConversationMetadata] = []
    for mtime, path in stamped[:limit]:
        try:
            messages = load_conversation(path)
        except ConversationLoadError as e:
            logger.debug(f"Skipping unreadable conversation: {e}")
            continue
        entries.append(
            ConversationMetadata(
                display_id=len(entries) + 1,
                timestamp=candidate_id_from_file_name(path.name),
                preview=_preview(path.name, messages),
                message_count=count_turns(messages),
                file_name=path.name,
                last_modified=datetime.fromtimestamp(mtime),
            )
        )
    return entries


def find_conversation(log_dir: str | Path, conversation_id: str) -> Path | None:
    matches = [
        path
        for path in _conversation_files(Path(log_dir))
        if candidate_id_from_file_name(path.name) == conversation_id
    ]
    if not matches:
        return None
    return max(matches, key=lambda path: path.stat().st_mtime)
