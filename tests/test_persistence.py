"""Tests for persistence layer: proves event log and state store work correctly."""

import json

import pytest
from datetime import datetime, timezone
from pathlib import Path

from timecapsule.models.capsule import Capsule
from timecapsule.models.events import RecordCreated, RecordDisclosed, RecordWithdrawn
from timecapsule.persistence.event_log import EventLog, EventKind, EventRecord
from timecapsule.persistence.state_store import StateStore

TS = int(datetime(2026, 2, 14, 12, 0, tzinfo=timezone.utc).timestamp())


# =====================================================================
# EventRecord Tests
# =====================================================================


class TestEventRecord:
    def test_create_produces_hash(self) -> None:
        event = EventRecord.create(
            event_id="E-001",
            event_kind=EventKind.RECORD_CREATED,
            actor_id="alice",
            payload={"id": 0},
        )
        assert event.event_hash.startswith("sha256:")
        assert len(event.event_hash) == 71  # "sha256:" + 64 hex chars

    def test_deterministic_hash(self) -> None:
        e1 = EventRecord.create("E-1", EventKind.ENGINE_PAUSED, "root", {"admin": "root"}, TS)
        e2 = EventRecord.create("E-1", EventKind.ENGINE_PAUSED, "root", {"admin": "root"}, TS)
        assert e1.event_hash == e2.event_hash
        assert e1.timestamp_utc == "2026-02-14T12:00:00Z"

    def test_different_payloads_different_hashes(self) -> None:
        e1 = EventRecord.create("E-1", EventKind.RECORD_WITHDRAWN, "bob", {"id": 1}, TS)
        e2 = EventRecord.create("E-1", EventKind.RECORD_WITHDRAWN, "bob", {"id": 2}, TS)
        assert e1.event_hash != e2.event_hash

    def test_from_fact_uses_fact_kind_and_actor(self) -> None:
        fact = RecordDisclosed(caller="bob", id=3, owner="alice")
        event = EventRecord.from_fact("E-1", fact, TS)
        assert event.event_kind == EventKind.RECORD_DISCLOSED
        assert event.actor_id == "bob"
        assert list(event.payload) == ["caller", "id", "owner"]


# =====================================================================
# EventLog Tests
# =====================================================================


def _created(event_id: str, capsule_id: int, owner: str = "alice") -> EventRecord:
    fact = RecordCreated(
        owner=owner, id=capsule_id, label="", unlock_time=TS + 10, created_time=TS,
    )
    return EventRecord.from_fact(event_id, fact, TS)


class TestEventLog:
    def test_append_and_count(self) -> None:
        log = EventLog()
        log.append(_created("E-1", 0))
        assert log.count == 1

    def test_duplicate_id_rejected(self) -> None:
        log = EventLog()
        event = _created("E-1", 0)
        log.append(event)
        with pytest.raises(ValueError, match="Duplicate"):
            log.append(event)

    def test_filter_by_kind(self) -> None:
        log = EventLog()
        log.append(_created("E-1", 0))
        log.append(EventRecord.from_fact("E-2", RecordWithdrawn(owner="alice", id=0), TS))
        log.append(_created("E-3", 1))
        assert len(log.events(kind=EventKind.RECORD_CREATED)) == 2
        assert len(log.events(kind=EventKind.RECORD_WITHDRAWN)) == 1

    def test_events_for_capsule(self) -> None:
        log = EventLog()
        log.append(_created("E-1", 0))
        log.append(_created("E-2", 1))
        log.append(EventRecord.from_fact(
            "E-3", RecordDisclosed(caller="bob", id=0, owner="alice"), TS,
        ))
        log.append(EventRecord.create("E-4", EventKind.ENGINE_PAUSED, "root", {"admin": "root"}, TS))
        history = log.events_for_capsule(0)
        assert [e.event_id for e in history] == ["E-1", "E-3"]

    def test_last_event(self) -> None:
        log = EventLog()
        assert log.last_event is None
        log.append(_created("E-1", 0))
        assert log.last_event.event_id == "E-1"

    def test_file_persistence(self, tmp_path: Path) -> None:
        """Events persist to file and can be loaded back."""
        log_path = tmp_path / "events.jsonl"

        log1 = EventLog(storage_path=log_path)
        log1.append(_created("E-1", 0))
        log1.append(EventRecord.from_fact("E-2", RecordWithdrawn(owner="alice", id=0), TS))

        log2 = EventLog(storage_path=log_path)
        assert log2.count == 2
        assert log2.events()[0].event_id == "E-1"
        assert log2.events()[1].event_kind == EventKind.RECORD_WITHDRAWN
        # Payload field order survives the round trip
        assert list(log2.events()[0].payload) == [
            "owner", "id", "label", "unlock_time", "created_time",
        ]

    def test_tampered_file_rejected(self, tmp_path: Path) -> None:
        log_path = tmp_path / "events.jsonl"
        log = EventLog(storage_path=log_path)
        log.append(_created("E-1", 0, owner="alice"))

        data = json.loads(log_path.read_text().strip())
        data["payload"]["owner"] = "mallory"
        log_path.write_text(json.dumps(data) + "\n")

        with pytest.raises(ValueError, match="Integrity check failed"):
            EventLog(storage_path=log_path)

    def test_duplicate_line_rejected_on_load(self, tmp_path: Path) -> None:
        log_path = tmp_path / "events.jsonl"
        log = EventLog(storage_path=log_path)
        log.append(_created("E-1", 0))
        line = log_path.read_text()
        log_path.write_text(line + line)

        with pytest.raises(ValueError, match="Duplicate event ID on recovery"):
            EventLog(storage_path=log_path)


# =====================================================================
# StateStore Tests
# =====================================================================


class TestStateStoreCapsules:
    def test_save_and_load_capsules(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path / "state.json")
        capsules = [
            Capsule(1, "bob", "sha256:" + "b" * 64, TS + 20, TS, "second", False),
            Capsule(0, "alice", "sha256:" + "a" * 64, TS + 10, TS, "first"),
        ]
        store.save_capsules(capsules)

        store2 = StateStore(tmp_path / "state.json")
        loaded = store2.load_capsules()
        assert [c.capsule_id for c in loaded] == [0, 1]
        assert loaded[0].fingerprint == "sha256:" + "a" * 64
        assert loaded[0].active is True
        assert loaded[1].active is False
        assert loaded[1].label == "second"


class TestStateStoreEngine:
    def test_save_and_load_pause_flag(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path / "state.json")
        store.save_engine_state(paused=True)
        assert StateStore(tmp_path / "state.json").load_engine_state() is True

    def test_sections_saved_independently(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path / "state.json")
        store.save_engine_state(paused=True)
        store.save_capsules([Capsule(0, "alice", "fp", TS + 1, TS)])
        store2 = StateStore(tmp_path / "state.json")
        assert store2.load_engine_state() is True
        assert len(store2.load_capsules()) == 1


class TestStateStoreEmpty:
    def test_empty_store(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path / "nonexistent.json")
        assert store.load_capsules() == []
        assert store.load_engine_state() is False
