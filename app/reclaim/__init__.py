"""reclaim - Bounded, policy-driven disk space reclamation for endpoints."""

__version__ = "0.1.0"
