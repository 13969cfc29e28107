"""Data models: capsule records, read views and audit facts."""

from timecapsule.models.capsule import Capsule, CapsuleInfo, Disclosure, SealedCapsule

__all__ = ["Capsule", "CapsuleInfo", "Disclosure", "SealedCapsule"]
