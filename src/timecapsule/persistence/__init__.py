"""Persistence layer: event log and state storage."""

from timecapsule.persistence.event_log import EventLog, EventRecord, EventKind
from timecapsule.persistence.state_store import StateStore

__all__ = ["EventLog", "EventRecord", "EventKind", "StateStore"]
