import json
from pathlib import Path

import pytest

from common.events import AssistantDeltaEvent, StreamFinishedEvent
from common.ids import generate_id
from shikai.config import AppConfig
from shikai.conversations.catalog import count_turns
from shikai.conversations.schema import AssistantMessage
from shikai.runtime.runtime import ChatRuntime
from shikai.runtime.terminal import Terminal
from shikai.tools import ToolRegistry


class ScriptedTerminal(Terminal):
    def __init__(self, inputs=None):
        super().__init__()
        self.inputs = list(inputs or [])
        self.output: list[str] = []

    def _next(self) -> str:
        if self.closed or not self.inputs:
            raise EOFError("no more input")
        return self.inputs.pop(0)

    def ask(self, prompt: str) -> str:
        self.output.append(prompt)
        return self._next()

    def read_line(self) -> str:
        return self._next()

    def write(self, text: str = "", end: str = "\n") -> None:
        self.output.append(text + end)

    @property
    def text(self) -> str:
        return "".join(self.output)


class FakeClient:
    """Answers every turn with a single assistant reply."""

    def __init__(self, replies=None, step_count: int = 1):
        self.replies = list(replies or [])
        self.step_count = step_count
        self.calls = 0
        self.prompts: list[str] = []

    def generate(self, prompt: str, max_tokens: int = 50) -> str:
        self.prompts.append(prompt)
        return "Generated Title"

    def stream(self, history, tools, max_steps):
        self.calls += 1
        text = self.replies.pop(0) if self.replies else f"reply {self.calls}"
        yield AssistantDeltaEvent(text=text)
        yield StreamFinishedEvent(
            messages=[AssistantMessage(content=text, id=generate_id())],
            step_count=self.step_count,
        )


class FakeSummarizer:
    def __init__(self, titles=None, error: Exception | None = None):
        self.titles = list(titles or [])
        self.error = error
        self.calls: list[dict] = []

    def summarize(self, history, is_first_message=False, current_title=""):
        self.calls.append(
            {
                "is_first_message": is_first_message,
                "current_title": current_title,
                "message_count": count_turns(history),
            }
        )
        if self.error is not None:
            raise self.error
        if self.titles:
            return self.titles.pop(0)
        return current_title or "First Topic"


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    path = tmp_path / "conversation-logs"
    path.mkdir()
    return path


@pytest.fixture
def config(log_dir: Path) -> AppConfig:
    config = AppConfig()
    config.conversation.log_dir = str(log_dir)
    config.agent.max_steps = 3
    return config


@pytest.fixture
def make_runtime(config):
    def factory(inputs=None, client=None, summarizer=None):
        return ChatRuntime(
            config,
            client=client or FakeClient(),
            summarizer=summarizer or FakeSummarizer(),
            tools=ToolRegistry(),
            terminal=ScriptedTerminal(inputs),
        )

    return factory


def write_conversation(log_dir: Path, file_name: str, messages: list[dict]) -> Path:
    path = log_dir / file_name
    path.write_text(json.dumps(messages), encoding="utf-8")
    return path
