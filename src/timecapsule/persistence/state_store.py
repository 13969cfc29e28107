"""State store: JSON-based snapshot of registry state.

Stores and recovers:
- Every capsule, in id order (fingerprint included; this file is the
  registry's own storage, not a read path)
- The engine pause flag

This is a simple file-based store suitable for single-node deployment.
Production deployments would replace this with a database backend
while keeping the same interface.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from timecapsule.models.capsule import Capsule


class StateStore:
    """JSON file-based state persistence.

    Usage:
        store = StateStore(Path("data/capsule_state.json"))
        store.save_capsules(engine.store.all_records())
        store.save_engine_state(paused=False)

        # On recovery:
        capsules = store.load_capsules()
        paused = store.load_engine_state()
    """

    def __init__(self, storage_path: Path) -> None:
        self._path = storage_path
        self._state: dict[str, Any] = {}
        if storage_path.exists():
            self._load()

    def _load(self) -> None:
        with self._path.open("r", encoding="utf-8") as f:
            self._state = json.load(f)

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(self._state, f, indent=2, sort_keys=True, ensure_ascii=False)
        tmp_path.replace(self._path)

    # ------------------------------------------------------------------
    # Capsule persistence
    # ------------------------------------------------------------------

    def save_capsules(self, capsules: list[Capsule]) -> None:
        """Serialize capsules to state, in id order."""
        self._state["capsules"] = [
            {
                "capsule_id": c.capsule_id,
                "owner": c.owner,
                "fingerprint": c.fingerprint,
                "unlock_time": c.unlock_time,
                "created_time": c.created_time,
                "label": c.label,
                "active": c.active,
            }
            for c in sorted(capsules, key=lambda c: c.capsule_id)
        ]
        self._save()

    def load_capsules(self) -> list[Capsule]:
        """Deserialize capsules from state, in id order."""
        capsules = [
            Capsule(
                capsule_id=data["capsule_id"],
                owner=data["owner"],
                fingerprint=data["fingerprint"],
                unlock_time=data["unlock_time"],
                created_time=data["created_time"],
                label=data.get("label", ""),
                active=data.get("active", True),
            )
            for data in self._state.get("capsules", [])
        ]
        return sorted(capsules, key=lambda c: c.capsule_id)

    # ------------------------------------------------------------------
    # Engine state persistence
    # ------------------------------------------------------------------

    def save_engine_state(self, paused: bool) -> None:
        self._state["engine"] = {"paused": paused}
        self._save()

    def load_engine_state(self) -> bool:
        """Return the persisted pause flag (False if never saved)."""
        return bool(self._state.get("engine", {}).get("paused", False))
