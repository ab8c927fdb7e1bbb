from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from shikai.conversations.catalog import count_turns, save_conversation
from shikai.conversations.naming import conversation_path, rename_conversation_file
from shikai.conversations.schema import CacheHint, Message, SystemMessage, UserMessage

logger = logging.getLogger(__name__)


@dataclass
class ConversationSession:
    id: str
    log_dir: Path
    file_path: Path
    history: list[Message] = field(default_factory=list)
    title: str = ""
    message_count: int = 0
    resumed: bool = False
    known_ids: set[str] = field(default_factory=set)
    rename_owed: bool = False

    @classmethod
    def start(cls, log_dir: str | Path, conversation_id: str, system_prompt: str) -> "ConversationSession":
        log_dir = Path(log_dir)
        return cls(
            id=conversation_id,
            log_dir=log_dir,
            file_path=conversation_path(log_dir, conversation_id),
            history=[SystemMessage(content=system_prompt, cache_hint=CacheHint())],
        )

    @classmethod
    def resume(
        cls,
        log_dir: str | Path,
        conversation_id: str,
        file_path: Path,
        history: list[Message],
        title: str = "",
    ) -> "ConversationSession":
        session = cls(
            id=conversation_id,
            log_dir=Path(log_dir),
            file_path=file_path,
            history=list(history),
            title=title,
            resumed=True,
        )
        session.known_ids.update(m.id for m in history if getattr(m, "id", None))
        session.refresh_message_count()
        return session

    @property
    def expected_path(self) -> Path:
        return conversation_path(self.log_dir, self.id, self.title)

    def add_user_message(self, content: str) -> None:
        self.history.append(UserMessage(content=content))
        self.refresh_message_count()

    def refresh_message_count(self) -> int:
        self.message_count = max(self.message_count, count_turns(self.history))
        return self.message_count

    def retitle(self, title: str) -> None:
        self.title = title
        self.file_path = rename_conversation_file(self.log_dir, self.file_path, self.id, title)
        self.rename_owed = self.file_path != self.expected_path

    def settle_file_path(self) -> Path:
        """Pay any rename owed since the title last changed.

        Only ``retitle`` makes a rename owed; a resumed file keeps its name as-is.
        A file that was never written simply adopts the expected name, unless
        something already lives there.
        """
        if not self.rename_owed:
            return self.file_path
        expected = self.expected_path
        if self.file_path.exists():
            self.file_path = rename_conversation_file(self.log_dir, self.file_path, self.id, self.title)
        elif not expected.exists():
            self.file_path = expected
        self.rename_owed = self.file_path != expected
        return self.file_path

    def save(self) -> Path:
        path = self.settle_file_path()
        save_conversation(path, self.history)
        logger.debug(f"Saved {len(self.history)} messages to {path.name}")
        return path
