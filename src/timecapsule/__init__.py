"""Time capsule registry: time-gated disclosure of content fingerprints."""

__version__ = "0.1.0"
