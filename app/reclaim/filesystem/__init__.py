"""Filesystem classification, traversal, and reclamation.

This module provides path classification, the safe tree walker, the
retrying remover, the time-boxed sweep controller, and the read-only
probe engine.
"""

from reclaim.filesystem.models import (
    ClassificationRule,
    PathEntry,
    ProbeSize,
    ProbeSnapshot,
    RemovalOutcome,
    RemovalStatus,
    RuleCategory,
    StopReason,
    SweepResult,
)
from reclaim.filesystem.operator import RetryingRemover
from reclaim.filesystem.patterns import DEFAULT_SKIP_PATTERNS, PatternMatcher, compile_pattern
from reclaim.filesystem.probe import ProbeEngine
from reclaim.filesystem.protected import PathClassifier, ProtectedPathSet
from reclaim.filesystem.sweeper import SweepController
from reclaim.filesystem.walker import SafeTreeWalker

__all__ = [
    "DEFAULT_SKIP_PATTERNS",
    "ClassificationRule",
    "PathClassifier",
    "PathEntry",
    "PatternMatcher",
    "ProbeEngine",
    "ProbeSize",
    "ProbeSnapshot",
    "ProtectedPathSet",
    "RemovalOutcome",
    "RemovalStatus",
    "RetryingRemover",
    "RuleCategory",
    "StopReason",
    "SweepController",
    "SweepResult",
    "SafeTreeWalker",
    "compile_pattern",
]
