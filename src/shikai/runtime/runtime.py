import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from common.events import (
    AssistantDeltaEvent,
    AssistantResponseStartEvent,
    StreamFinishedEvent,
    ToolCallEvent,
    ToolResultEvent,
)
from shikai.client import ModelClient
from shikai.config import AppConfig
from shikai.conversations.catalog import list_conversations, load_conversation
from shikai.conversations.ids import (
    candidate_id_from_file_name,
    resolve_conversation_id,
    timestamp_id,
)
from shikai.conversations.naming import extract_title_from_file_name, fix_malformed_file_name
from shikai.conversations.schema import ConversationMetadata
from shikai.conversations.session import ConversationSession
from shikai.conversations.titles import TitleScheduler
from shikai.history import merge_final_messages
from shikai.prompts import build_system_prompt
from shikai.runtime.terminal import Terminal
from shikai.summarizer import Summarizer
from shikai.tools import ToolRegistry, build_default_tools

logger = logging.getLogger(__name__)


class StreamIncompleteError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class TurnResult:
    step_count: int
    appended: int
    step_limit_reached: bool


class ChatRuntime:
    def __init__(
        self,
        config: AppConfig,
        *,
        client=None,
        summarizer=None,
        tools: ToolRegistry | None = None,
        terminal: Terminal | None = None,
        root_path: str | Path = ".",
    ):
        self.config = config
        self.terminal = terminal or Terminal()
        self.client = client or ModelClient(
            config.agent, prompt_caching=config.conversation.prompt_caching
        )
        self.summarizer = summarizer or Summarizer(self.client)
        self.tools = tools or build_default_tools(
            root_path,
            auto_approve=config.agent.auto_approve,
            confirm=self.terminal.confirm,
        )
        self.log_dir = Path(config.conversation.log_dir)
        self.started_at = timestamp_id()
        self.session: ConversationSession | None = None
        self.titles: TitleScheduler | None = None

    @property
    def max_steps(self) -> int:
        return self.config.agent.max_steps

    def list_conversations(self) -> list[ConversationMetadata]:
        return list_conversations(self.log_dir, limit=self.config.conversation.catalog_limit)

    def _attach(self, session: ConversationSession) -> ConversationSession:
        self.session = session
        self.titles = TitleScheduler(
            session,
            self.summarizer,
            self.config.conversation.title_update_interval,
        )
        return session

    def start_new(self) -> ConversationSession:
        self.log_dir.mkdir(parents=True, exist_ok=True)
        session = ConversationSession.start(
            self.log_dir,
            self.started_at,
            build_system_prompt(self.config.agent.name),
        )
        logger.info(f"Started conversation {session.id}")
        return self._attach(session)

    def resume(self, file_name: str) -> ConversationSession:
        """Load ``file_name`` from the log directory and make it the active session.

        Raises ``ConversationLoadError`` when the file cannot be parsed.
        """
        history = load_conversation(self.log_dir / file_name)

        candidate = candidate_id_from_file_name(file_name)
        conversation_id = resolve_conversation_id(candidate, self.started_at)
        title = extract_title_from_file_name(file_name) or ""
        if candidate != conversation_id:
            file_path = fix_malformed_file_name(self.log_dir, file_name, conversation_id, title)
        else:
            file_path = self.log_dir / file_name

        session = self._attach(
            ConversationSession.resume(self.log_dir, conversation_id, file_path, history, title)
        )

        if not session.title and len(history) > 1:
            self.terminal.write("\n🎯 This conversation doesn't have a title yet. Let me create one...")
            if self.titles.regenerate():
                self.terminal.write(f"✨ Generated title: \"{session.title}\"")

        logger.info(f"Resumed conversation {session.id} from {session.file_path.name}")
        return session

    def save(self) -> Path:
        return self.session.save()

    def process_user_message(self, user_input: str) -> TurnResult:
        session = self.session
        started_at = time.monotonic()

        session.add_user_message(user_input)
        self.titles.generate_initial(user_input)
        self.titles.maybe_update()

        self.terminal.write(f"\n{self.config.agent.name}: ")
        finished: StreamFinishedEvent | None = None
        started_response = False

        def on_event(event) -> None:
            nonlocal started_response

            if isinstance(event, AssistantResponseStartEvent):
                started_response = False
                return
            if isinstance(event, AssistantDeltaEvent):
                started_response = True
                self.terminal.write(event.text, end="")
                return
            if isinstance(event, ToolCallEvent):
                if started_response:
                    self.terminal.write()
                self.terminal.write(f"🔧 Calling: {event.tool_name}({json.dumps(event.args)})")
                return
            if isinstance(event, ToolResultEvent):
                if event.result.get("success"):
                    self.terminal.write(f"✅ Result: {str(event.result.get('result', 'Success'))[:200]}")
                else:
                    self.terminal.write(f"❌ Error: {event.result.get('error')}")

        for event in self.client.stream(session.history, self.tools, self.max_steps):
            if isinstance(event, StreamFinishedEvent):
                finished = event
            else:
                on_event(event)
        self.terminal.write()

        if finished is None:
            raise StreamIncompleteError("Model stream ended without a final message batch")

        appended = merge_final_messages(
            session.history, finished.messages, session.known_ids, rotate_cache_hint=True
        )
        session.refresh_message_count()
        self.titles.maybe_update()
        session.save()

        logger.debug(
            f"Turn finished in {(time.monotonic() - started_at) * 1000:.0f}ms, "
            f"{finished.step_count} step(s), {len(appended)} new message(s)"
        )
        return TurnResult(
            step_count=finished.step_count,
            appended=len(appended),
            step_limit_reached=finished.step_count >= self.max_steps,
        )
