from datetime import datetime, timezone
from pathlib import Path

from shikai.conversations.ids import (
    candidate_id_from_file_name,
    is_canonical_id,
    resolve_conversation_id,
    timestamp_id,
)
from shikai.conversations.naming import (
    conversation_file_name,
    extract_title_from_file_name,
    fix_malformed_file_name,
    rename_conversation_file,
    slugify_title,
)
from shikai.prompts import clean_title

CONVERSATION_ID = "2024-01-01T00-00-00-000Z"


def test_timestamp_id_format():
    moment = datetime(2024, 3, 5, 7, 8, 9, 123456, tzinfo=timezone.utc)
    assert timestamp_id(moment) == "2024-03-05T07-08-09-123Z"
    assert is_canonical_id(timestamp_id())


def test_resolve_keeps_canonical_id():
    assert resolve_conversation_id(CONVERSATION_ID, "fallback") == CONVERSATION_ID


def test_resolve_falls_back_for_malformed_ids():
    fallback = "2025-06-01T12-00-00-000Z"
    for candidate in ["", "garbage", "2024-01-01", "2024-01-01T00:00:00.000Z", f"x{CONVERSATION_ID}"]:
        assert resolve_conversation_id(candidate, fallback) == fallback


def test_candidate_id_from_file_name():
    assert candidate_id_from_file_name(f"conversation-{CONVERSATION_ID}.json") == CONVERSATION_ID
    assert candidate_id_from_file_name(f"conversation-{CONVERSATION_ID}-old_topic.json") == CONVERSATION_ID
    assert candidate_id_from_file_name("conversation-garbage.json") == "garbage"


def test_slugify_title():
    assert slugify_title("Fix Login Bug") == "fix_login_bug"
    assert slugify_title("What's  up, C++?") == "whats_up_c"
    assert slugify_title("multi-step  plan") == "multi-step_plan"


def test_conversation_file_name():
    assert conversation_file_name(CONVERSATION_ID) == f"conversation-{CONVERSATION_ID}.json"
    assert (
        conversation_file_name(CONVERSATION_ID, "Old Topic")
        == f"conversation-{CONVERSATION_ID}-old_topic.json"
    )


def test_extract_title_from_file_name():
    assert extract_title_from_file_name(f"conversation-{CONVERSATION_ID}-old_topic.json") == "Old Topic"
    assert extract_title_from_file_name(f"conversation-{CONVERSATION_ID}.json") is None
    assert extract_title_from_file_name("conversation-garbage-topic.json") is None


def test_rename_moves_file(tmp_path: Path):
    old_path = tmp_path / conversation_file_name(CONVERSATION_ID)
    old_path.write_text("[]")

    new_path = rename_conversation_file(tmp_path, old_path, CONVERSATION_ID, "New Topic")

    assert new_path.name == f"conversation-{CONVERSATION_ID}-new_topic.json"
    assert new_path.exists()
    assert not old_path.exists()


def test_rename_never_overwrites(tmp_path: Path):
    old_path = tmp_path / conversation_file_name(CONVERSATION_ID)
    old_path.write_text("[\"old\"]")
    occupied = tmp_path / conversation_file_name(CONVERSATION_ID, "Taken")
    occupied.write_text("[\"taken\"]")

    result = rename_conversation_file(tmp_path, old_path, CONVERSATION_ID, "Taken")

    assert result == old_path
    assert old_path.read_text() == "[\"old\"]"
    assert occupied.read_text() == "[\"taken\"]"


def test_rename_missing_source_is_a_no_op(tmp_path: Path):
    old_path = tmp_path / conversation_file_name(CONVERSATION_ID)

    result = rename_conversation_file(tmp_path, old_path, CONVERSATION_ID, "Anything")

    assert result == old_path
    assert list(tmp_path.iterdir()) == []


def test_fix_malformed_file_name(tmp_path: Path):
    (tmp_path / "conversation-garbage.json").write_text("[]")

    fixed = fix_malformed_file_name(tmp_path, "conversation-garbage.json", CONVERSATION_ID)

    assert fixed.name == f"conversation-{CONVERSATION_ID}.json"
    assert fixed.exists()
    assert not (tmp_path / "conversation-garbage.json").exists()


def test_fix_malformed_file_name_keeps_title(tmp_path: Path):
    (tmp_path / "conversation-garbage.json").write_text("[]")

    fixed = fix_malformed_file_name(tmp_path, "conversation-garbage.json", CONVERSATION_ID, "Some Topic")

    assert fixed.name == f"conversation-{CONVERSATION_ID}-some_topic.json"


def test_titles_without_ascii_letters_keep_the_plain_name():
    assert clean_title("日本語 メモ") == "New Chat Session"
    assert conversation_file_name(CONVERSATION_ID, "日本語 メモ") == f"conversation-{CONVERSATION_ID}.json"
    assert conversation_file_name(CONVERSATION_ID, "?!") == f"conversation-{CONVERSATION_ID}.json"


def test_cleaned_title_reads_back_from_file_name():
    title = clean_title("Café notes für Jürgen")
    name = conversation_file_name(CONVERSATION_ID, title)

    assert extract_title_from_file_name(name).strip()
    assert not name.endswith("-_.json")
