"""Lifecycle engine: time-gated capsule transitions and access control.

Every external operation enters here. The engine validates preconditions
against the current store state and the clock, appends the resulting
audit fact to the event log, then applies the transition.

Ordering of each mutation:
1. Check every precondition (first failure wins, nothing written yet).
2. Durable audit append (if it fails, the store stays untouched).
3. Store mutation (cannot fail: preconditions already hold).

Invariants:
- A fingerprint is only returned when now >= unlock_time and the capsule
  is active and the engine is not paused.
- Withdrawal is owner-only and strictly before unlock; once withdrawn a
  capsule is never disclosable again.
- Only create, disclose and withdraw are gated by pause. Reads never are.

The engine holds no locks. Callers sharing an engine across threads must
serialise operations (see CapsuleService).
"""

from __future__ import annotations

import logging
from typing import Optional

from timecapsule.clock import Clock, SystemClock
from timecapsule.dates.converter import date_to_timestamp
from timecapsule.errors import (
    EnginePaused,
    InvalidArgument,
    InvalidState,
    PermissionDenied,
    TimingViolation,
)
from timecapsule.models import events
from timecapsule.models.capsule import Capsule, CapsuleInfo, Disclosure, SealedCapsule
from timecapsule.persistence.event_log import EventKind, EventLog, EventRecord
from timecapsule.policy.resolver import PolicyResolver
from timecapsule.lifecycle.store import RecordStore

logger = logging.getLogger(__name__)


class LifecycleEngine:
    """Creates, discloses and withdraws capsules.

    Usage:
        engine = LifecycleEngine("admin", PolicyResolver.default(), clock)
        cid = engine.create("alice", "sha256:...", unlock_time, "letter")
        engine.disclose("bob", cid)      # TimingViolation until unlock
        engine.withdraw("alice", cid)    # owner only, before unlock

    The administrator identity and pause state are held per instance, so
    independent engines can coexist.
    """

    def __init__(
        self,
        administrator: str,
        resolver: Optional[PolicyResolver] = None,
        clock: Optional[Clock] = None,
        store: Optional[RecordStore] = None,
        event_log: Optional[EventLog] = None,
        paused: bool = False,
    ) -> None:
        if not administrator:
            raise ValueError("Administrator identity must be non-empty")
        self._administrator = administrator
        self._resolver = resolver or PolicyResolver.default()
        self._clock = clock or SystemClock()
        self._store = store if store is not None else RecordStore()
        self._event_log = event_log if event_log is not None else EventLog()
        self._paused = paused
        self._require_store_matches_log()
        # Continue numbering from a persisted log to avoid ID collision
        self._event_counter = self._event_log.count

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(
        self,
        caller: str,
        fingerprint: str,
        unlock_time: int,
        label: str = "",
    ) -> int:
        """Commit a fingerprint until `unlock_time`. Returns the capsule id."""
        self._require_not_paused()
        if not fingerprint:
            raise InvalidArgument("Fingerprint cannot be empty")
        _require_utf8("Fingerprint", fingerprint)

        now = self._clock.now()
        if unlock_time <= now:
            raise TimingViolation(
                f"Unlock time {unlock_time} must be in the future (now {now})"
            )
        horizon = self._resolver.max_lock_horizon()
        if unlock_time > now + horizon:
            raise TimingViolation(
                f"Unlock time {unlock_time} is beyond the {horizon}s horizon"
            )
        max_label = self._resolver.max_label_length()
        if len(label) > max_label:
            raise InvalidArgument(
                f"Label length {len(label)} exceeds maximum {max_label}"
            )
        _require_utf8("Label", label)

        capsule_id = self._store.count
        self._emit(events.RecordCreated(
            owner=caller,
            id=capsule_id,
            label=label,
            unlock_time=unlock_time,
            created_time=now,
        ), now)
        assigned = self._store.append(Capsule(
            capsule_id=capsule_id,
            owner=caller,
            fingerprint=fingerprint,
            unlock_time=unlock_time,
            created_time=now,
            label=label,
        ))
        logger.info(
            "Capsule %d created by %s, unlocks at %d", assigned, caller, unlock_time,
        )
        return assigned

    def disclose(self, caller: str, capsule_id: int) -> Disclosure:
        """Reveal a capsule's content. Any caller, once unlocked.

        Repeatable: each call records a fresh disclosure event.
        """
        self._require_not_paused()
        record = self._active_record(capsule_id)
        now = self._clock.now()
        if not record.is_unlocked(now):
            raise TimingViolation(
                f"Capsule {capsule_id} is still locked "
                f"({record.unlock_time - now}s remaining)"
            )

        self._emit(events.RecordDisclosed(
            caller=caller, id=capsule_id, owner=record.owner,
        ), now)
        logger.debug("Capsule %d disclosed to %s", capsule_id, caller)
        return Disclosure(
            fingerprint=record.fingerprint,
            label=record.label,
            owner=record.owner,
            created_time=record.created_time,
        )

    def withdraw(self, caller: str, capsule_id: int) -> None:
        """Permanently deactivate a capsule. Owner only, before unlock."""
        self._require_not_paused()
        record = self._active_record(capsule_id)
        if caller != record.owner:
            raise PermissionDenied(
                f"{caller} is not the owner of capsule {capsule_id}"
            )
        now = self._clock.now()
        if record.is_unlocked(now):
            raise TimingViolation(
                f"Capsule {capsule_id} is already unlocked; withdrawal window closed"
            )

        self._emit(events.RecordWithdrawn(owner=caller, id=capsule_id), now)
        self._store.set_inactive(capsule_id)
        logger.info("Capsule %d withdrawn by %s", capsule_id, caller)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def pause(self, caller: str) -> None:
        """Halt create, disclose and withdraw. Administrator only."""
        self._require_administrator(caller)
        if self._paused:
            raise InvalidState("Engine is already paused")
        self._emit(events.EnginePaused(admin=caller), self._clock.now())
        self._paused = True
        logger.info("Engine paused by %s", caller)

    def unpause(self, caller: str) -> None:
        """Resume gated operations. Administrator only."""
        self._require_administrator(caller)
        if not self._paused:
            raise InvalidState("Engine is not paused")
        self._emit(events.EngineUnpaused(admin=caller), self._clock.now())
        self._paused = False
        logger.info("Engine unpaused by %s", caller)

    # ------------------------------------------------------------------
    # Queries (never pause-gated)
    # ------------------------------------------------------------------

    def info(self, capsule_id: int) -> CapsuleInfo:
        """Return metadata for an active capsule, fingerprint withheld."""
        record = self._active_record(capsule_id)
        return CapsuleInfo(
            owner=record.owner,
            label=record.label,
            unlock_time=record.unlock_time,
            created_time=record.created_time,
            is_locked=not record.is_unlocked(self._clock.now()),
            is_active=record.active,
        )

    def time_until_unlock(self, capsule_id: int) -> int:
        """Seconds until an active capsule unlocks; 0 once unlocked."""
        record = self._active_record(capsule_id)
        now = self._clock.now()
        if record.is_unlocked(now):
            return 0
        return record.unlock_time - now

    def list_mine(self, caller: str) -> list[int]:
        return self._store.list_by_owner(caller)

    def list_for(self, owner: str) -> list[int]:
        return self._store.list_by_owner(owner)

    def active_count(self) -> int:
        """Count active capsules by scanning every capsule ever created.

        Cost grows with the total number of capsules, not the number
        currently active. Use tracked_active_count() for an O(1) read.
        """
        return sum(1 for record in self._store.all_records() if record.active)

    def tracked_active_count(self) -> int:
        """Incrementally maintained active count; equals active_count()."""
        return self._store.tracked_active_count

    def record(self, capsule_id: int) -> SealedCapsule:
        """Direct lookup by id, active or not. Never carries the fingerprint."""
        return self._store.get(capsule_id).sealed()

    def current_time(self) -> int:
        return self._clock.now()

    def date_to_timestamp(
        self, year: int, month: int, day: int, hour: int, minute: int,
    ) -> int:
        """Calendar conversion within the configured year bounds."""
        min_year, max_year = self._resolver.calendar_year_bounds()
        return date_to_timestamp(
            year, month, day, hour, minute,
            min_year=min_year, max_year=max_year,
        )

    @property
    def total_records(self) -> int:
        return self._store.count

    def created_count(self, owner: str) -> int:
        """Capsules ever created by `owner`. Withdrawals do not decrement."""
        return self._store.created_by(owner)

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def administrator(self) -> str:
        return self._administrator

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_store_matches_log(self) -> None:
        """Fail closed when the store and the audit trail disagree.

        Ids are assigned from the store count, so a store that lags the
        log would hand out ids the audit trail already gave to others.
        """
        logged = len(self._event_log.events(EventKind.RECORD_CREATED))
        if logged != self._store.count:
            raise ValueError(
                f"Record store holds {self._store.count} capsules but the "
                f"event log records {logged} creations; restore the state "
                f"snapshot before starting the engine"
            )

    def _require_not_paused(self) -> None:
        if self._paused:
            raise EnginePaused("Engine is paused")

    def _require_administrator(self, caller: str) -> None:
        if caller != self._administrator:
            raise PermissionDenied(f"{caller} is not the administrator")

    def _active_record(self, capsule_id: int) -> Capsule:
        """Fetch a capsule that exists and is active, or raise."""
        record = self._store.get(capsule_id)
        if not record.active:
            raise InvalidState(f"Capsule {capsule_id} is not active")
        return record

    def _emit(self, fact: events.AuditFact, now: int) -> EventRecord:
        """Append an audit fact to the log.

        The counter only advances once the append has succeeded, so a
        failed write does not burn an event id.
        """
        try:
            event = EventRecord.from_fact(
                event_id=f"EVT-{self._event_counter + 1:08d}",
                fact=fact,
                timestamp=now,
            )
        except UnicodeEncodeError as e:
            # Caller identities are not validated elsewhere
            raise InvalidArgument(f"Audit fields must be valid UTF-8: {e.reason}") from e
        self._event_log.append(event)
        self._event_counter += 1
        return event


def _require_utf8(name: str, value: str) -> None:
    """Reject strings the audit log and snapshot cannot encode (lone surrogates)."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidArgument(f"{name} is not valid UTF-8: {e.reason}") from e
