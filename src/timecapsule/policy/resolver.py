"""Policy resolver: loads capsule_params.json and exposes every engine
limit as a typed method call.

No magic. If a value is missing from the config, it fails loud.
default() is the one exception: it builds the resolver from the
documented limits for callers that ship no config directory.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

# Ten years of 365 days, in seconds
DEFAULT_LOCK_HORIZON_SECONDS = 10 * 365 * 24 * 60 * 60
DEFAULT_MAX_LABEL_LENGTH = 100
DEFAULT_MIN_YEAR = 2024
DEFAULT_MAX_YEAR = 2034

_DEFAULT_PARAMS: dict[str, Any] = {
    "version": "1.0",
    "capsule_limits": {
        "max_lock_horizon_seconds": DEFAULT_LOCK_HORIZON_SECONDS,
        "max_label_length": DEFAULT_MAX_LABEL_LENGTH,
    },
    "calendar": {
        "min_year": DEFAULT_MIN_YEAR,
        "max_year": DEFAULT_MAX_YEAR,
    },
}


class PolicyResolver:
    """Loads and resolves engine policy.

    Usage:
        resolver = PolicyResolver.from_config_dir(Path("config"))
        horizon = resolver.max_lock_horizon()
        min_year, max_year = resolver.calendar_year_bounds()
    """

    def __init__(self, params: dict[str, Any]) -> None:
        self._params = params
        self._validate()

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> PolicyResolver:
        """Load from the canonical config directory."""
        return cls(_load_json(config_dir / "capsule_params.json"))

    @classmethod
    def default(cls) -> PolicyResolver:
        return cls(json.loads(json.dumps(_DEFAULT_PARAMS)))

    def _validate(self) -> None:
        if "version" not in self._params:
            raise ValueError("capsule_params.json missing version")
        horizon = self.max_lock_horizon()
        if horizon <= 0:
            raise ValueError(f"max_lock_horizon_seconds must be > 0, got {horizon}")
        max_label = self.max_label_length()
        if max_label < 0:
            raise ValueError(f"max_label_length must be >= 0, got {max_label}")
        min_year, max_year = self.calendar_year_bounds()
        if min_year < 1970 or max_year < min_year:
            raise ValueError(
                f"Invalid calendar year bounds: {min_year}..{max_year}"
            )

    # ------------------------------------------------------------------
    # Capsule limits
    # ------------------------------------------------------------------

    def max_lock_horizon(self) -> int:
        """Return the furthest an unlock time may lie ahead, in seconds."""
        return int(self._params["capsule_limits"]["max_lock_horizon_seconds"])

    def max_label_length(self) -> int:
        """Return the maximum label length in characters."""
        return int(self._params["capsule_limits"]["max_label_length"])

    # ------------------------------------------------------------------
    # Calendar conversion
    # ------------------------------------------------------------------

    def calendar_year_bounds(self) -> tuple[int, int]:
        """Return (min_year, max_year) accepted by date conversion."""
        cal = self._params["calendar"]
        return int(cal["min_year"]), int(cal["max_year"])


def _load_json(path: Path) -> dict[str, Any]:
    """Load a JSON file or raise with clear path."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)
