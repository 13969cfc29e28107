"""Capsule lifecycle: record store and time-gated engine."""

from timecapsule.lifecycle.engine import LifecycleEngine
from timecapsule.lifecycle.store import RecordStore

__all__ = ["LifecycleEngine", "RecordStore"]
