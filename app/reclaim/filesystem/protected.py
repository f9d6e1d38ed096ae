"""Path classification: protected paths and skip patterns.

A path is *protected* when the engine owns it (its own logs and archives),
when it is a reparse point, or when it cannot be resolved at all. A path
is *skipped* when it matches a configured skip pattern. Both predicates
are pure functions of configuration and filesystem metadata.
"""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from reclaim.filesystem.models import ClassificationRule, RuleCategory
from reclaim.filesystem.patterns import PatternMatcher, compile_patterns

if TYPE_CHECKING:
    from reclaim.core.config import CleanupConfig

logger = logging.getLogger(__name__)


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Return an absolute, normalized path without following links.

    Raises:
        ValueError: If the path is empty or contains a NUL byte.
        OSError: If the current directory cannot be determined.
    """
    raw = os.fspath(path)
    if not raw or "\x00" in raw:
        msg = f"Cannot normalize path: {raw!r}"
        raise ValueError(msg)
    return os.path.abspath(raw)


def _comparable(path: str) -> str:
    return os.path.normcase(path).rstrip("\\/") or os.path.normcase(path)


def is_reparse_stat(st: os.stat_result) -> bool:
    """Check lstat metadata for a symlink, junction, or other reparse point."""
    if stat.S_ISLNK(st.st_mode):
        return True
    attributes = getattr(st, "st_file_attributes", 0)
    return bool(attributes & stat.FILE_ATTRIBUTE_REPARSE_POINT)


def is_reparse_point(path: str) -> bool:
    """Check whether a path is a reparse point.

    Raises:
        OSError: If the path cannot be stat'ed.
    """
    return is_reparse_stat(os.lstat(path))


def is_filesystem_root(path: str) -> bool:
    """Check whether a normalized path is its own filesystem or drive root."""
    _, tail = os.path.splitdrive(path)
    if tail.strip("\\/") == "":
        return True
    return os.path.dirname(path) == path


@dataclass(frozen=True, slots=True)
class ProtectedPathSet:
    """Paths the engine owns and must never delete.

    Membership covers the path itself and everything nested under it.

    Attributes:
        paths: Normalized, case-folded owned paths.
    """

    paths: tuple[str, ...]

    @classmethod
    def from_paths(cls, paths: Iterable[str | os.PathLike[str] | None]) -> ProtectedPathSet:
        normalized: list[str] = []
        for p in paths:
            if p is None:
                continue
            try:
                normalized.append(_comparable(normalize_path(p)))
            except (ValueError, OSError):
                logger.warning("Ignoring unresolvable protected path: %r", p)
        return cls(paths=tuple(dict.fromkeys(normalized)))

    def contains(self, normalized: str) -> bool:
        """Check whether a normalized path equals or is nested under a member."""
        candidate = _comparable(normalized)
        for owned in self.paths:
            if candidate == owned:
                return True
            if candidate.startswith(owned + os.sep) or candidate.startswith(owned + "/"):
                return True
        return False

    def encloses_member(self, normalized: str) -> bool:
        """Check whether a normalized path is a strict ancestor of a member."""
        candidate = _comparable(normalized)
        for owned in self.paths:
            if owned != candidate and (
                owned.startswith(candidate + os.sep) or owned.startswith(candidate + "/")
            ):
                return True
        return False


class PathClassifier:
    """Decides whether a path is protected or matches a skip pattern.

    The classifier is immutable once constructed; ``without_skip`` returns
    a new instance rather than modifying this one.

    Args:
        protected: Engine-owned paths.
        skip_patterns: Skip patterns (regex or token).
    """

    def __init__(
        self,
        protected: ProtectedPathSet,
        skip_patterns: Iterable[str] = (),
    ) -> None:
        self._protected = protected
        self._skip_patterns: tuple[str, ...] = tuple(skip_patterns)
        self._matchers: tuple[PatternMatcher, ...] = compile_patterns(self._skip_patterns)

    @classmethod
    def from_config(
        cls,
        config: CleanupConfig,
        run_archive_file: Path | None = None,
    ) -> PathClassifier:
        """Build a classifier from configuration.

        Args:
            config: Loaded cleanup configuration.
            run_archive_file: This run's archive file, if already known.

        Returns:
            PathClassifier protecting every log and archive location.
        """
        protected = ProtectedPathSet.from_paths(
            [
                config.effective_temp_log,
                config.effective_main_log,
                run_archive_file,
                config.log_dir,
                config.effective_archive_dir,
            ]
        )
        return cls(protected, config.skip_patterns)

    @property
    def protected(self) -> ProtectedPathSet:
        return self._protected

    @property
    def skip_patterns(self) -> tuple[str, ...]:
        return self._skip_patterns

    @property
    def rules(self) -> tuple[ClassificationRule, ...]:
        """Protected paths and skip patterns as classification rules."""
        protected = tuple(
            ClassificationRule(p, RuleCategory.PROTECTED) for p in self._protected.paths
        )
        return protected + tuple(
            ClassificationRule(p, RuleCategory.SKIP) for p in self._skip_patterns
        )

    def without_skip(self, patterns: Iterable[str]) -> PathClassifier:
        """Return a classifier whose skip set omits the given patterns.

        Protected paths are unaffected.
        """
        exempt = {p.lower() for p in patterns}
        remaining = [p for p in self._skip_patterns if p.lower() not in exempt]
        return PathClassifier(self._protected, remaining)

    def is_protected(self, path: str | os.PathLike[str]) -> bool:
        """Check whether a path must never be touched.

        True when the path is engine-owned (or nested under an owned path),
        is a reparse point, or cannot be normalized or stat'ed.

        Args:
            path: Filesystem path to check.

        Returns:
            True if the path is protected.
        """
        try:
            normalized = normalize_path(path)
        except (ValueError, OSError):
            logger.debug("Cannot normalize %r, treating as protected", path)
            return True

        if self._protected.contains(normalized):
            return True

        try:
            return is_reparse_point(normalized)
        except OSError:
            logger.debug("Cannot stat %s, treating as protected", normalized)
            return True

    def is_skip(self, path: str | os.PathLike[str]) -> bool:
        """Check whether a path matches any skip pattern (case-insensitive).

        Args:
            path: Filesystem path to check.

        Returns:
            True if any pattern matches.
        """
        try:
            normalized = normalize_path(path)
        except (ValueError, OSError):
            normalized = os.fspath(path)
        return any(m.matches(normalized) for m in self._matchers)

    def skip_reason(self, path: str) -> str | None:
        """Return the first pattern matching a path, or None."""
        for m in self._matchers:
            if m.matches(path):
                return m.pattern
        return None
