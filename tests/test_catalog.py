import os
from pathlib import Path

import pytest

from conftest import write_conversation
from shikai.conversations.catalog import (
    ConversationLoadError,
    find_conversation,
    list_conversations,
    load_conversation,
    save_conversation,
)
from shikai.conversations.schema import AssistantMessage, SystemMessage, ToolMessage, UserMessage


def _messages(user_text: str) -> list[dict]:
    return [
        {"role": "system", "content": "You are helpful."},
        {"role": "user", "content": user_text},
        {"role": "assistant", "content": "Sure.", "id": "a1"},
    ]


def _stamp(path: Path, mtime: float) -> None:
    os.utime(path, (mtime, mtime))


def test_list_empty_or_missing_directory(tmp_path: Path):
    assert list_conversations(tmp_path) == []
    assert list_conversations(tmp_path / "missing") == []


def test_list_orders_by_mtime_and_caps(log_dir: Path):
    for i in range(12):
        path = write_conversation(
            log_dir, f"conversation-2024-01-{i + 1:02d}T00-00-00-000Z.json", _messages(f"question {i}")
        )
        _stamp(path, 1_700_000_000 + i * 60)

    entries = list_conversations(log_dir)

    assert len(entries) == 10
    assert [e.display_id for e in entries] == list(range(1, 11))
    assert entries[0].timestamp == "2024-01-12T00-00-00-000Z"
    assert entries[-1].timestamp == "2024-01-03T00-00-00-000Z"
    times = [e.last_modified for e in entries]
    assert times == sorted(times, reverse=True)


def test_list_skips_corrupt_files(log_dir: Path):
    for i in range(5):
        path = write_conversation(
            log_dir, f"conversation-2024-02-{i + 1:02d}T00-00-00-000Z.json", _messages("hi")
        )
        _stamp(path, 1_700_000_000 + i)
    corrupt = log_dir / "conversation-2024-02-09T00-00-00-000Z.json"
    corrupt.write_text("{not json")
    _stamp(corrupt, 1_700_000_100)

    entries = list_conversations(log_dir)

    assert len(entries) == 5
    assert corrupt.name not in [e.file_name for e in entries]
    assert entries[0].display_id == 1


def test_list_skips_invalid_messages(log_dir: Path):
    write_conversation(log_dir, "conversation-2024-03-01T00-00-00-000Z.json", [{"role": "wizard"}])

    assert list_conversations(log_dir) == []


def test_ignores_unrelated_files(log_dir: Path):
    (log_dir / "notes.json").write_text("[]")
    write_conversation(log_dir, "conversation-2024-03-01T00-00-00-000Z.json", _messages("hello"))

    entries = list_conversations(log_dir)

    assert [e.file_name for e in entries] == ["conversation-2024-03-01T00-00-00-000Z.json"]


def test_preview_prefers_title_then_last_user_message(log_dir: Path):
    titled = write_conversation(
        log_dir, "conversation-2024-04-01T00-00-00-000Z-deploy_plan.json", _messages("ignored")
    )
    _stamp(titled, 1_700_000_200)
    long_text = "x" * 80
    untitled = write_conversation(
        log_dir, "conversation-2024-04-02T00-00-00-000Z.json", _messages(long_text)
    )
    _stamp(untitled, 1_700_000_100)
    empty = write_conversation(
        log_dir, "conversation-2024-04-03T00-00-00-000Z.json", [{"role": "system", "content": "s"}]
    )
    _stamp(empty, 1_700_000_000)

    entries = list_conversations(log_dir)

    assert [e.preview for e in entries] == ["Deploy Plan", "x" * 60, "No messages"]
    assert [e.message_count for e in entries] == [2, 2, 0]


def test_find_conversation_by_id(log_dir: Path):
    path = write_conversation(
        log_dir, "conversation-2024-05-01T00-00-00-000Z-topic.json", _messages("hi")
    )

    assert find_conversation(log_dir, "2024-05-01T00-00-00-000Z") == path
    assert find_conversation(log_dir, "2024-05-02T00-00-00-000Z") is None


def test_save_then_load_preserves_history(log_dir: Path):
    path = log_dir / "conversation-2024-06-01T00-00-00-000Z.json"
    history = [
        SystemMessage(content="system"),
        UserMessage(content="list files"),
        AssistantMessage(
            content=None,
            tool_calls=[{"id": "call_1", "type": "function", "function": {"name": "list_files", "arguments": "{}"}}],
            id="a1",
        ),
        ToolMessage(content="{\"success\": true}", tool_call_id="call_1", name="list_files", id="t1"),
    ]

    save_conversation(path, history)

    assert load_conversation(path) == history
    assert not list(log_dir.glob("*.tmp"))


def test_load_conversation_errors(log_dir: Path):
    bad = log_dir / "conversation-2024-06-02T00-00-00-000Z.json"
    bad.write_text("[{\"role\": \"tool\", \"content\": \"x\"}]")

    with pytest.raises(ConversationLoadError):
        load_conversation(bad)
    with pytest.raises(ConversationLoadError):
        load_conversation(log_dir / "missing.json")
