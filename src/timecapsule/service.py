"""Capsule service: unified facade over the lifecycle engine.

This is the primary interface for programmatic access to the registry.
It adds the concerns the engine leaves to its caller:
- Total ordering: every operation commits under one lock, so concurrent
  callers observe fully committed state and never interleave.
- Persistence: the event log (audit trail) and the state snapshot.
- Typed results: engine failures become ServiceResult with an ErrorKind.

Audit-first: the engine appends the audit fact before touching state.
If the snapshot write fails afterwards, in-memory state is still aligned
with the audit trail; the failure is surfaced as a warning and the
service is flagged as persistence-degraded.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Optional

from timecapsule.clock import Clock
from timecapsule.errors import CapsuleError, ErrorKind
from timecapsule.lifecycle.engine import LifecycleEngine
from timecapsule.lifecycle.store import RecordStore
from timecapsule.persistence.event_log import EventLog, EventRecord
from timecapsule.persistence.state_store import StateStore
from timecapsule.policy.resolver import PolicyResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    error_kind: Optional[ErrorKind] = None


class CapsuleService:
    """Registry facade.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        service = CapsuleService("admin", resolver)

        result = service.create_capsule("alice", "sha256:...", unlock, "note")
        capsule_id = result.data["capsule_id"]
        result = service.disclose("bob", capsule_id)

    Persistence (optional):
        service = CapsuleService(
            "admin", resolver, event_log=log, state_store=store,
        )
        # State is persisted on each mutation and loaded on construction.
    """

    def __init__(
        self,
        administrator: str,
        resolver: Optional[PolicyResolver] = None,
        clock: Optional[Clock] = None,
        event_log: Optional[EventLog] = None,
        state_store: Optional[StateStore] = None,
    ) -> None:
        self._state_store = state_store
        self._lock = threading.Lock()

        if state_store is not None:
            store = RecordStore.restore(state_store.load_capsules())
            paused = state_store.load_engine_state()
        else:
            store = RecordStore()
            paused = False

        self._engine = LifecycleEngine(
            administrator,
            resolver=resolver,
            clock=clock,
            store=store,
            event_log=event_log,
            paused=paused,
        )

        # Set when a snapshot write fails after the audit append succeeded
        self._persistence_degraded: bool = False

    @property
    def engine(self) -> LifecycleEngine:
        return self._engine

    @property
    def persistence_degraded(self) -> bool:
        return self._persistence_degraded

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_capsule(
        self,
        caller: str,
        fingerprint: str,
        unlock_time: int,
        label: str = "",
    ) -> ServiceResult:
        """Commit a fingerprint until unlock_time."""
        def _op() -> dict[str, Any]:
            capsule_id = self._engine.create(caller, fingerprint, unlock_time, label)
            return {"capsule_id": capsule_id}
        return self._commit(_op, mutates=True)

    def create_capsule_at(
        self,
        caller: str,
        fingerprint: str,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        label: str = "",
    ) -> ServiceResult:
        """Commit a fingerprint until a UTC calendar date."""
        def _op() -> dict[str, Any]:
            unlock_time = self._engine.date_to_timestamp(year, month, day, hour, minute)
            capsule_id = self._engine.create(caller, fingerprint, unlock_time, label)
            return {"capsule_id": capsule_id, "unlock_time": unlock_time}
        return self._commit(_op, mutates=True)

    def disclose(self, caller: str, capsule_id: int) -> ServiceResult:
        """Reveal a capsule once unlocked. Records an audit event."""
        def _op() -> dict[str, Any]:
            return asdict(self._engine.disclose(caller, capsule_id))
        # Disclosure only appends to the audit log; no snapshot to write
        return self._commit(_op, mutates=False)

    def withdraw(self, caller: str, capsule_id: int) -> ServiceResult:
        """Owner-only, pre-unlock deactivation."""
        def _op() -> dict[str, Any]:
            self._engine.withdraw(caller, capsule_id)
            return {"capsule_id": capsule_id, "active": False}
        return self._commit(_op, mutates=True)

    def pause(self, caller: str) -> ServiceResult:
        def _op() -> dict[str, Any]:
            self._engine.pause(caller)
            return {"paused": True}
        return self._commit(_op, mutates=True)

    def unpause(self, caller: str) -> ServiceResult:
        def _op() -> dict[str, Any]:
            self._engine.unpause(caller)
            return {"paused": False}
        return self._commit(_op, mutates=True)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def info(self, capsule_id: int) -> ServiceResult:
        return self._commit(
            lambda: asdict(self._engine.info(capsule_id)), mutates=False,
        )

    def time_until_unlock(self, capsule_id: int) -> ServiceResult:
        return self._commit(
            lambda: {"seconds": self._engine.time_until_unlock(capsule_id)},
            mutates=False,
        )

    def get_capsule(self, capsule_id: int) -> ServiceResult:
        """Direct lookup; the fingerprint is never included."""
        return self._commit(
            lambda: asdict(self._engine.record(capsule_id)), mutates=False,
        )

    def list_capsules(self, owner: str) -> list[int]:
        with self._lock:
            return self._engine.list_for(owner)

    def date_to_timestamp(
        self, year: int, month: int, day: int, hour: int = 0, minute: int = 0,
    ) -> ServiceResult:
        return self._commit(
            lambda: {
                "timestamp": self._engine.date_to_timestamp(
                    year, month, day, hour, minute,
                ),
            },
            mutates=False,
        )

    def audit_trail(self, capsule_id: int) -> list[EventRecord]:
        """Every audit event recorded for one capsule, oldest first."""
        with self._lock:
            return self._engine.event_log.events_for_capsule(capsule_id)

    def status(self) -> dict[str, Any]:
        """Registry-wide summary."""
        with self._lock:
            return {
                "total_records": self._engine.total_records,
                "active_records": self._engine.tracked_active_count(),
                "paused": self._engine.paused,
                "administrator": self._engine.administrator,
                "current_time": self._engine.current_time(),
                "audit_events": self._engine.event_log.count,
                "persistence_degraded": self._persistence_degraded,
            }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _commit(
        self,
        op: Callable[[], dict[str, Any]],
        mutates: bool,
    ) -> ServiceResult:
        """Run one operation in the total order and wrap its outcome."""
        with self._lock:
            try:
                data = op()
            except CapsuleError as e:
                logger.debug("Rejected (%s): %s", e.kind.value, e.message)
                return ServiceResult(
                    success=False, errors=[e.message], error_kind=e.kind,
                )
            except OSError as e:
                # Audit append failed before any state change
                logger.error("Event log failure: %s", e)
                return ServiceResult(
                    success=False, errors=[f"Event log failure: {e}"],
                )

            if mutates:
                warning = self._safe_persist_post_audit()
                if warning:
                    data["warning"] = warning
            return ServiceResult(success=True, data=data)

    def _persist_state(self) -> None:
        """Persist current state to the state store (if wired).

        Can raise OSError; callers go through _safe_persist_post_audit().
        """
        if self._state_store is None:
            return
        self._state_store.save_capsules(self._engine.store.all_records())
        self._state_store.save_engine_state(self._engine.paused)

    def _safe_persist_post_audit(self) -> Optional[str]:
        """Persist state after the audit event has been committed.

        Never rolls back: the audit trail is already durable. On failure
        in-memory state stays correct but the snapshot is stale.
        """
        try:
            self._persist_state()
            return None
        except OSError as e:
            self._persistence_degraded = True
            logger.warning("Snapshot write failed after audit append: %s", e)
            return (
                f"Persistence degraded: {e}; state committed in audit trail "
                f"but StateStore is stale"
            )
