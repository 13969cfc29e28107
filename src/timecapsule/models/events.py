"""Audit facts emitted by the lifecycle engine.

Facts are consumed by external monitoring, so field order and presence
are part of the contract. payload() preserves declared field order.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, ClassVar


@dataclass(frozen=True)
class AuditFact:
    """Base class for audit facts. Subclasses set `kind_name`."""
    kind_name: ClassVar[str] = ""

    def payload(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def actor(self) -> str:
        """Identity credited with the fact in the event log."""
        raise NotImplementedError


@dataclass(frozen=True)
class RecordCreated(AuditFact):
    kind_name: ClassVar[str] = "record_created"
    owner: str
    id: int
    label: str
    unlock_time: int
    created_time: int

    def actor(self) -> str:
        return self.owner


@dataclass(frozen=True)
class RecordDisclosed(AuditFact):
    kind_name: ClassVar[str] = "record_disclosed"
    caller: str
    id: int
    owner: str

    def actor(self) -> str:
        return self.caller


@dataclass(frozen=True)
class RecordWithdrawn(AuditFact):
    kind_name: ClassVar[str] = "record_withdrawn"
    owner: str
    id: int

    def actor(self) -> str:
        return self.owner


@dataclass(frozen=True)
class EnginePaused(AuditFact):
    kind_name: ClassVar[str] = "engine_paused"
    admin: str

    def actor(self) -> str:
        return self.admin


@dataclass(frozen=True)
class EngineUnpaused(AuditFact):
    kind_name: ClassVar[str] = "engine_unpaused"
    admin: str

    def actor(self) -> str:
        return self.admin
