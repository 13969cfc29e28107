"""Policy: engine parameters loaded from JSON config."""

from timecapsule.policy.resolver import PolicyResolver

__all__ = ["PolicyResolver"]
