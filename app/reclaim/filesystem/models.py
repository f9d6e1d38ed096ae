"""Filesystem domain models for walking, removal, and sweeping.

This module defines the core data structures produced while walking a
root, removing entries, sweeping a root, and probing sizes.
"""

from dataclasses import dataclass, field
from enum import Enum

from reclaim.core.errors import ErrorKind

_MB = 1024 * 1024
_GB = 1024 * 1024 * 1024


class RuleCategory(str, Enum):
    """Semantic category of a classification rule.

    Attributes:
        PROTECTED: Path must never be touched.
        SKIP: Path is unsafe to delete piecemeal and is left alone.
    """

    PROTECTED = "protected"
    SKIP = "skip"


class RemovalStatus(str, Enum):
    """Result of a single removal request.

    Attributes:
        REMOVED: Entry was deleted.
        SKIPPED: Entry was refused by a pre-flight safety check.
        FAILED: Every deletion attempt failed.
    """

    REMOVED = "removed"
    SKIPPED = "skipped"
    FAILED = "failed"


class StopReason(str, Enum):
    """Why a sweep stopped.

    Attributes:
        COMPLETED: Every candidate was processed.
        TIME_BUDGET_EXCEEDED: The wall-clock budget ran out.
        ROOT_UNAVAILABLE: The root itself could not be enumerated.
    """

    COMPLETED = "completed"
    TIME_BUDGET_EXCEEDED = "time_budget_exceeded"
    ROOT_UNAVAILABLE = "root_unavailable"


@dataclass(frozen=True, slots=True)
class PathEntry:
    """A filesystem node observed during a walk.

    Attributes:
        path: Absolute, normalized path.
        is_dir: Whether the entry is a directory.
        is_reparse: Whether the entry is a symlink, junction, or mount point.
        mtime: Last write time as epoch seconds (None if unavailable).
        size_bytes: Size in bytes for files, None for directories.
    """

    path: str
    is_dir: bool
    is_reparse: bool = False
    mtime: float | None = None
    size_bytes: int | None = None

    def __post_init__(self) -> None:
        if not self.path:
            msg = "Path cannot be empty"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    """A configured pattern and the category it assigns.

    Attributes:
        pattern: Regular expression or human-authored token.
        category: What a match means for the path.
    """

    pattern: str
    category: RuleCategory = RuleCategory.SKIP


@dataclass(frozen=True, slots=True)
class RemovalOutcome:
    """Result of removing a single filesystem entry.

    Attributes:
        path: Path that was operated on.
        status: Removed, skipped, or failed.
        attempts: Number of deletion attempts made (0 when skipped).
        elapsed: Seconds spent, including backoff waits.
        error: Last error message if the removal failed or was refused.
        error_kind: Failure kind for failed removals and unnormalizable paths.
    """

    path: str
    status: RemovalStatus
    attempts: int = 0
    elapsed: float = 0.0
    error: str | None = None
    error_kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        """True when the entry was removed or safely skipped."""
        return self.status != RemovalStatus.FAILED


@dataclass(slots=True)
class SweepResult:
    """Aggregate counters for one sweep of one root.

    Attributes:
        root: The swept root path.
        started_at: Wall-clock start time (epoch seconds).
        deleted: Entries removed (or that would be, in dry-run).
        skipped: Entries refused by safety or age checks.
        failed: Entries whose removal failed after all retries.
        bytes_freed: Bytes of removed files (intended bytes in dry-run).
        dirs_removed: Empty directories removed after the file pass.
        stop_reason: Why the sweep stopped.
        dry_run: Whether this sweep only recorded intents.
        pruned: Branches the walker did not descend into.
    """

    root: str
    started_at: float
    deleted: int = 0
    skipped: int = 0
    failed: int = 0
    bytes_freed: int = 0
    dirs_removed: int = 0
    stop_reason: StopReason = StopReason.COMPLETED
    dry_run: bool = False
    pruned: set[str] = field(default_factory=set)

    @property
    def processed(self) -> int:
        return self.deleted + self.skipped + self.failed


@dataclass(frozen=True, slots=True)
class ProbeSize:
    """Aggregate size of a probed root."""

    bytes: int = 0

    @property
    def megabytes(self) -> float:
        return round(self.bytes / _MB, 2)

    @property
    def gigabytes(self) -> float:
        return round(self.bytes / _GB, 2)


# Mapping of probed root -> aggregate size at a point in time
ProbeSnapshot = dict[str, ProbeSize]
