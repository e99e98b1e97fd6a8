import json

from helpai.models.memory import (
    MAX_MEMORY_ENTRIES,
    MemoryEntry,
    UserMemory,
    parse_memory,
    summarize_turn,
)


def test_parse_empty_values():
    assert parse_memory(None).conversations == []
    assert parse_memory("").conversations == []


def test_parse_legacy_blob_without_version():
    raw = {
        "conversations": [
            {"lastInteraction": "2024-05-01T10:00:00+00:00", "topic": "hi", "response": "hello"},
        ]
    }

    memory = parse_memory(raw)

    assert memory.version == 1
    assert memory.conversations[0].topic == "hi"


def test_parse_json_string():
    raw = json.dumps({"version": 1, "conversations": [{"topic": "a", "response": "b"}]})
    assert parse_memory(raw).conversations[0].response == "b"


def test_unparsable_blobs_start_fresh():
    assert parse_memory("{not json").conversations == []
    assert parse_memory(["a", "list"]).conversations == []
    assert parse_memory({"conversations": "oops"}).conversations == []
    assert parse_memory({"version": 99, "conversations": []}).conversations == []


def test_append_caps_at_ten_and_evicts_oldest():
    memory = UserMemory()
    for i in range(13):
        memory = memory.append(MemoryEntry(topic=f"t{i}", response="r"))

    assert len(memory.conversations) == MAX_MEMORY_ENTRIES
    assert memory.conversations[0].topic == "t3"
    assert memory.conversations[-1].topic == "t12"


def test_oversized_stored_blob_is_capped_on_read():
    raw = {"conversations": [{"topic": str(i), "response": ""} for i in range(15)]}
    assert len(parse_memory(raw).conversations) == MAX_MEMORY_ENTRIES


def test_recent_returns_newest_five():
    memory = UserMemory(conversations=[MemoryEntry(topic=str(i)) for i in range(8)])
    assert [e.topic for e in memory.recent()] == ["3", "4", "5", "6", "7"]


def test_summarize_turn_clips_topic_and_response():
    entry = summarize_turn("q" * 150, "a" * 300)
    assert len(entry.topic) == 100
    assert len(entry.response) == 200


def test_to_json_uses_wire_names():
    data = UserMemory().append(MemoryEntry(topic="x", response="y")).to_json()

    assert data["version"] == 1
    assert set(data["conversations"][0]) == {"lastInteraction", "topic", "response"}
    # round-trips through the JSON column
    assert parse_memory(json.loads(json.dumps(data))).conversations[0].topic == "x"
