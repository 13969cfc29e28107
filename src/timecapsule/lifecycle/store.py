"""Record store: authoritative collection of capsules.

Arena layout: capsules live in a list indexed by their dense integer id,
with a secondary owner → ids index. The store never validates; the
lifecycle engine checks every precondition before calling it.

Invariants maintained here:
- ids are assigned 0, 1, 2, ... in append order; never reused or skipped.
- the owner index and per-owner created counts are append-only and are
  not decremented on withdrawal.
- the tracked active count always equals a scan over `active` flags.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from timecapsule.errors import NotFound
from timecapsule.models.capsule import Capsule


class RecordStore:
    """In-memory arena of capsules plus owner index and counters.

    Records are frozen dataclasses, so get() hands out values that
    callers cannot use to mutate stored state. set_inactive() is the
    only mutation entry point after append().
    """

    def __init__(self) -> None:
        self._records: list[Capsule] = []
        self._by_owner: dict[str, list[int]] = {}
        self._created_by: dict[str, int] = {}
        self._active = 0

    def append(self, record: Capsule) -> int:
        """Store a capsule under the next sequential id and return the id.

        The capsule_id carried by `record` is overwritten with the
        assigned id.
        """
        capsule_id = len(self._records)
        stored = replace(record, capsule_id=capsule_id)
        self._records.append(stored)
        self._by_owner.setdefault(stored.owner, []).append(capsule_id)
        self._created_by[stored.owner] = self._created_by.get(stored.owner, 0) + 1
        if stored.active:
            self._active += 1
        return capsule_id

    def get(self, capsule_id: int) -> Capsule:
        """Return the capsule with this id. Raises NotFound."""
        if not self.exists(capsule_id):
            raise NotFound(f"Capsule not found: {capsule_id}")
        return self._records[capsule_id]

    def exists(self, capsule_id: int) -> bool:
        return 0 <= capsule_id < len(self._records)

    def set_inactive(self, capsule_id: int) -> None:
        """Flip a capsule's active flag to False.

        The engine guarantees this runs at most once per id, while active.
        """
        record = self.get(capsule_id)
        if record.active:
            self._active -= 1
        self._records[capsule_id] = replace(record, active=False)

    def list_by_owner(self, owner: str) -> list[int]:
        return list(self._by_owner.get(owner, []))

    def created_by(self, owner: str) -> int:
        """Number of capsules `owner` has ever created."""
        return self._created_by.get(owner, 0)

    @property
    def count(self) -> int:
        return len(self._records)

    @property
    def tracked_active_count(self) -> int:
        return self._active

    def all_records(self) -> list[Capsule]:
        return list(self._records)

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    @classmethod
    def restore(cls, records: Iterable[Capsule]) -> RecordStore:
        """Rebuild a store from a snapshot ordered by id.

        Raises ValueError if the ids are not dense and zero-based.
        """
        store = cls()
        for expected_id, record in enumerate(records):
            if record.capsule_id != expected_id:
                raise ValueError(
                    f"Snapshot ids not dense: expected {expected_id}, "
                    f"found {record.capsule_id}"
                )
            store.append(record)
        return store
