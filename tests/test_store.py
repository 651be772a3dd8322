import json
from pathlib import Path

import pytest

from kncode.messages import SystemMessage, TextBlock, UserMessage
from kncode.store import (
    SessionNotFoundError,
    SessionRecord,
    SessionStore,
    TranscriptTooLargeError,
)


@pytest.fixture
def store(tmp_path):
    return SessionStore(tmp_path / "sessions")


def test_create_and_load(store, tmp_path):
    record = store.create_session(tmp_path, "anthropic/claude-sonnet-4-5")
    assert record.state == "active"
    assert record.turns_completed == 0
    assert record.created_at == record.updated_at
    assert store.load_session(record.id) == record
    assert store.session_dir(record.id) == store.base_dir / record.id


def test_session_json_is_pretty(store, tmp_path):
    record = store.create_session(tmp_path, "m")
    text = (store.session_dir(record.id) / "session.json").read_text(encoding="utf-8")
    assert "\n  " in text
    assert json.loads(text)["state"] == "active"
    assert not (store.session_dir(record.id) / "session.json.tmp").exists()


def test_record_dict_round_trip(store, tmp_path):
    record = store.create_session(tmp_path, "m")
    assert SessionRecord.from_dict(record.to_dict()) == record


def test_record_from_dict_malformed():
    with pytest.raises(ValueError):
        SessionRecord.from_dict({"id": "x"})


def test_load_missing_session(store):
    assert store.load_session("missing") is None


def test_messages_round_trip(store, tmp_path):
    record = store.create_session(tmp_path, "m")
    first = UserMessage(content=[TextBlock("hello")])
    second = SystemMessage(content="note", subtype="info")
    store.append_message(record.id, first)
    store.append_message(record.id, second)
    assert store.load_messages(record.id) == [first, second]


def test_messages_missing_transcript(store, tmp_path):
    record = store.create_session(tmp_path, "m")
    assert store.load_messages(record.id) == []


def test_malformed_lines_are_skipped(store, tmp_path):
    record = store.create_session(tmp_path, "m")
    good = UserMessage(content=[TextBlock("ok")])
    store.append_message(record.id, good)
    with (store.session_dir(record.id) / "messages.jsonl").open("a", encoding="utf-8") as f:
        f.write("not json\n{\"Bogus\": {}}\n")
    store.append_message(record.id, good)
    assert store.load_messages(record.id) == [good, good]


def test_append_without_session_dir_fails(store):
    with pytest.raises(OSError):
        store.append_message("nope", UserMessage())


def test_update_state(store, tmp_path):
    record = store.create_session(tmp_path, "m")
    store.update_session_state(record.id, "cancelled")
    loaded = store.load_session(record.id)
    assert loaded.state == "cancelled"
    assert loaded.updated_at >= record.updated_at
    assert loaded.created_at == record.created_at


def test_update_state_missing(store):
    with pytest.raises(SessionNotFoundError, match="Session not found: ghost"):
        store.update_session_state("ghost", "cancelled")


def test_update_stats(store, tmp_path):
    record = store.create_session(tmp_path, "m")
    store.update_session_stats(record.id, 5, 1.25)
    loaded = store.load_session(record.id)
    assert (loaded.turns_completed, loaded.cost_usd) == (5, 1.25)
    assert loaded.state == "active"


def test_update_stats_missing_is_noop(store):
    store.update_session_stats("ghost", 3, 0.5)
    assert store.load_session("ghost") is None
    assert not store.session_dir("ghost").exists()


def test_cwd_preserved(store, tmp_path):
    record = store.create_session(str(tmp_path), "m")
    assert store.load_session(record.id).cwd == Path(tmp_path)