"""Tests for the record store: id assignment, owner index, counters."""

import pytest

from timecapsule.errors import NotFound
from timecapsule.lifecycle.store import RecordStore
from timecapsule.models.capsule import Capsule


def _capsule(owner: str = "alice", active: bool = True, capsule_id: int = 0) -> Capsule:
    return Capsule(
        capsule_id=capsule_id,
        owner=owner,
        fingerprint="sha256:" + "a" * 64,
        unlock_time=2_000,
        created_time=1_000,
        label="note",
        active=active,
    )


class TestAppend:
    def test_ids_are_dense_from_zero(self) -> None:
        store = RecordStore()
        ids = [store.append(_capsule()) for _ in range(5)]
        assert ids == [0, 1, 2, 3, 4]
        assert store.count == 5

    def test_assigned_id_overrides_record_id(self) -> None:
        store = RecordStore()
        store.append(_capsule())
        cid = store.append(_capsule(capsule_id=99))
        assert cid == 1
        assert store.get(1).capsule_id == 1

    def test_owner_index_in_insertion_order(self) -> None:
        store = RecordStore()
        store.append(_capsule("alice"))
        store.append(_capsule("bob"))
        store.append(_capsule("alice"))
        assert store.list_by_owner("alice") == [0, 2]
        assert store.list_by_owner("bob") == [1]
        assert store.list_by_owner("nobody") == []

    def test_created_by_counts_per_owner(self) -> None:
        store = RecordStore()
        store.append(_capsule("alice"))
        store.append(_capsule("alice"))
        assert store.created_by("alice") == 2
        assert store.created_by("bob") == 0


class TestGet:
    def test_missing_id_raises_not_found(self) -> None:
        store = RecordStore()
        with pytest.raises(NotFound):
            store.get(0)
        assert store.exists(0) is False
        store.append(_capsule())
        assert store.exists(0) is True
        with pytest.raises(NotFound):
            store.get(1)
        with pytest.raises(NotFound):
            store.get(-1)

    def test_returned_record_cannot_mutate_store(self) -> None:
        store = RecordStore()
        store.append(_capsule())
        record = store.get(0)
        with pytest.raises(AttributeError):
            record.active = False  # type: ignore[misc]
        assert store.get(0).active is True

    def test_listing_is_a_copy(self) -> None:
        store = RecordStore()
        store.append(_capsule("alice"))
        ids = store.list_by_owner("alice")
        ids.append(42)
        assert store.list_by_owner("alice") == [0]


class TestSetInactive:
    def test_flips_active_and_keeps_counters(self) -> None:
        store = RecordStore()
        store.append(_capsule("alice"))
        store.append(_capsule("alice"))
        assert store.tracked_active_count == 2

        store.set_inactive(0)
        assert store.get(0).active is False
        assert store.get(1).active is True
        assert store.tracked_active_count == 1
        # Creation counters and index are never decremented
        assert store.created_by("alice") == 2
        assert store.list_by_owner("alice") == [0, 1]
        assert store.count == 2


class TestRestore:
    def test_restore_rebuilds_index_and_counters(self) -> None:
        records = [
            _capsule("alice", capsule_id=0),
            _capsule("bob", capsule_id=1, active=False),
            _capsule("alice", capsule_id=2),
        ]
        store = RecordStore.restore(records)
        assert store.count == 3
        assert store.list_by_owner("alice") == [0, 2]
        assert store.tracked_active_count == 2
        assert store.get(1).active is False

    def test_restore_rejects_gaps(self) -> None:
        records = [_capsule(capsule_id=0), _capsule(capsule_id=2)]
        with pytest.raises(ValueError, match="not dense"):
            RecordStore.restore(records)
