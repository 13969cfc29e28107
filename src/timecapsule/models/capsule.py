"""Capsule data models: the stored record and the views handed to callers.

A capsule commits a content fingerprint (an opaque hash of data stored
elsewhere) until an unlock time. The stored record is frozen: the only
state change a capsule ever undergoes is active → withdrawn, and the
record store performs it by replacing the record, never in place.

Visibility rules:
- The fingerprint leaves the registry only through Disclosure, which the
  engine builds only when the capsule is active and unlocked.
- SealedCapsule and CapsuleInfo never carry the fingerprint.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Capsule:
    """A committed, time-gated fingerprint.

    Times are Unix seconds. `active` starts True and may flip to False
    exactly once (withdrawal).
    """
    capsule_id: int
    owner: str
    fingerprint: str
    unlock_time: int
    created_time: int
    label: str = ""
    active: bool = True

    def is_unlocked(self, now: int) -> bool:
        """True once `now` has reached the unlock time."""
        return now >= self.unlock_time

    def sealed(self) -> SealedCapsule:
        """Return the fingerprint-free view of this capsule."""
        return SealedCapsule(
            capsule_id=self.capsule_id,
            owner=self.owner,
            unlock_time=self.unlock_time,
            created_time=self.created_time,
            label=self.label,
            active=self.active,
        )


@dataclass(frozen=True)
class SealedCapsule:
    """Direct-lookup view of a capsule, fingerprint withheld."""
    capsule_id: int
    owner: str
    unlock_time: int
    created_time: int
    label: str
    active: bool


@dataclass(frozen=True)
class CapsuleInfo:
    """Metadata view returned by info()."""
    owner: str
    label: str
    unlock_time: int
    created_time: int
    is_locked: bool
    is_active: bool


@dataclass(frozen=True)
class Disclosure:
    """Full capsule content, returned only after unlock."""
    fingerprint: str
    label: str
    owner: str
    created_time: int
