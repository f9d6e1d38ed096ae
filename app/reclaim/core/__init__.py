"""Core configuration, orchestration, and error types for reclaim."""
