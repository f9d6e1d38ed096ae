"""Unit tests for SweepController."""

import itertools
import os
import time
from pathlib import Path
from unittest.mock import patch

from reclaim.core.config import CleanupConfig
from reclaim.filesystem.models import StopReason
from reclaim.filesystem.operator import RetryingRemover
from reclaim.filesystem.protected import PathClassifier, ProtectedPathSet
from reclaim.filesystem.sweeper import SweepController
from reclaim.filesystem.walker import SafeTreeWalker


def _controller(classifier: PathClassifier, **kwargs: object) -> SweepController:
    walker = SafeTreeWalker(classifier)
    remover = RetryingRemover(classifier, max_retries=2, retry_delay=0.0)
    return SweepController(walker, remover, **kwargs)  # type: ignore[arg-type]


def _populate(root: Path, count: int) -> list[Path]:
    files = []
    for i in range(count):
        path = root / f"file{i:02d}.tmp"
        path.write_text("x" * 10)
        files.append(path)
    return files


class TestSweep:
    """Tests for a complete sweep."""

    def test_end_to_end_fixture(
        self, classifier: PathClassifier, sweep_root: Path, tmp_path: Path
    ) -> None:
        """Only the plain file is deleted; the synced folder and the link survive."""
        (sweep_root / "a.txt").write_text("a")
        synced = sweep_root / "OneDrive"
        synced.mkdir()
        (synced / "b.txt").write_text("b")
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "target.txt").write_text("keep")
        (sweep_root / "c").symlink_to(outside, target_is_directory=True)

        result = _controller(classifier).sweep(sweep_root, budget=60)

        assert result.stop_reason == StopReason.COMPLETED
        assert result.deleted == 1
        assert result.skipped >= 1
        assert result.failed == 0
        assert not (sweep_root / "a.txt").exists()
        assert (synced / "b.txt").exists()
        assert (sweep_root / "c").is_symlink()
        assert (outside / "target.txt").read_text() == "keep"
        assert str(synced) in result.pruned

    def test_bytes_freed_counted(
        self, bare_classifier: PathClassifier, sweep_root: Path
    ) -> None:
        """Sizes of removed files are summed."""
        _populate(sweep_root, 3)

        result = _controller(bare_classifier).sweep(sweep_root, budget=60)

        assert result.deleted == 3
        assert result.bytes_freed == 30

    def test_owned_logs_inside_root_survive(self, sweep_root: Path) -> None:
        """A log directory placed inside the swept root is never touched."""
        config = CleanupConfig(log_dir=sweep_root / "logs", skip_patterns=[])
        config.log_dir.mkdir()
        config.effective_temp_log.write_text("in progress")
        config.effective_main_log.write_text("history")
        (sweep_root / "junk.tmp").write_text("junk")
        classifier = PathClassifier.from_config(config)

        result = _controller(classifier).sweep(sweep_root, budget=60)

        assert result.deleted == 1
        assert config.effective_temp_log.exists()
        assert config.effective_main_log.exists()
        assert str(config.log_dir) in result.pruned

    def test_safety_gate_rechecks_each_candidate(
        self, bare_classifier: PathClassifier, sweep_root: Path
    ) -> None:
        """A protected file yielded by the walker is still not removed."""
        keep = sweep_root / "keep.log"
        keep.write_text("keep")
        (sweep_root / "junk.tmp").write_text("junk")
        gate = PathClassifier(ProtectedPathSet.from_paths([keep]))

        walker = SafeTreeWalker(bare_classifier)
        remover = RetryingRemover(bare_classifier, retry_delay=0.0)
        result = SweepController(walker, remover, classifier=gate).sweep(sweep_root, budget=60)

        assert keep.exists()
        assert result.deleted == 1
        assert result.skipped == 1

    def test_missing_root_completes_empty(
        self, bare_classifier: PathClassifier, tmp_path: Path
    ) -> None:
        """A root that does not exist yields a completed, empty result."""
        result = _controller(bare_classifier).sweep(tmp_path / "absent", budget=60)

        assert result.stop_reason == StopReason.COMPLETED
        assert result.processed == 0

    def test_unreadable_root_reports_unavailable(
        self, bare_classifier: PathClassifier, sweep_root: Path
    ) -> None:
        """A root that cannot be enumerated stops the sweep without raising."""
        with patch("reclaim.filesystem.walker.os.scandir", side_effect=PermissionError("denied")):
            result = _controller(bare_classifier).sweep(sweep_root, budget=60)

        assert result.stop_reason == StopReason.ROOT_UNAVAILABLE
        assert result.deleted == 0

    def test_removal_failure_counted(
        self, bare_classifier: PathClassifier, sweep_root: Path
    ) -> None:
        """Failures are counted and never raised out of the sweep."""
        _populate(sweep_root, 2)

        with patch.object(RetryingRemover, "_delete_path", side_effect=PermissionError("locked")):
            result = _controller(bare_classifier).sweep(sweep_root, budget=60)

        assert result.failed == 2
        assert result.deleted == 0
        assert result.stop_reason == StopReason.COMPLETED


class TestTimeBudget:
    """Tests for the wall-clock budget."""

    def test_budget_exceeded_stops_early(
        self, bare_classifier: PathClassifier, sweep_root: Path
    ) -> None:
        """With a clock that advances one second per check, the sweep stops early."""
        files = _populate(sweep_root, 10)
        clock = itertools.count().__next__

        result = _controller(bare_classifier, clock=clock).sweep(sweep_root, budget=3)

        assert result.stop_reason == StopReason.TIME_BUDGET_EXCEEDED
        assert result.processed < len(files)
        assert result.deleted == 3
        assert sum(1 for f in files if f.exists()) == 7

    def test_zero_budget_touches_nothing(
        self, bare_classifier: PathClassifier, sweep_root: Path
    ) -> None:
        """An exhausted budget stops before the first candidate."""
        files = _populate(sweep_root, 3)
        clock = itertools.count().__next__

        result = _controller(bare_classifier, clock=clock).sweep(sweep_root, budget=0)

        assert result.stop_reason == StopReason.TIME_BUDGET_EXCEEDED
        assert result.deleted == 0
        assert all(f.exists() for f in files)

    def test_no_empty_dir_pass_after_timeout(
        self, bare_classifier: PathClassifier, sweep_root: Path
    ) -> None:
        """Empty directories are left alone when the budget ran out."""
        (sweep_root / "empty").mkdir()
        clock = itertools.count().__next__

        result = _controller(bare_classifier, clock=clock).sweep(sweep_root, budget=0)

        assert result.dirs_removed == 0
        assert (sweep_root / "empty").exists()


class TestDryRun:
    """Tests for dry-run sweeps."""

    def test_dry_run_is_non_destructive(
        self, bare_classifier: PathClassifier, sweep_root: Path
    ) -> None:
        """Dry-run counts intended deletions but removes nothing."""
        files = _populate(sweep_root, 4)
        (sweep_root / "empty").mkdir()

        result = _controller(bare_classifier).sweep(sweep_root, budget=60, dry_run=True)

        assert result.dry_run is True
        assert result.deleted == 4
        assert result.bytes_freed == 40
        assert result.dirs_removed == 0
        assert all(f.exists() for f in files)
        assert (sweep_root / "empty").exists()

    def test_dry_run_still_skips_protected(
        self, classifier: PathClassifier, sweep_root: Path
    ) -> None:
        """Skip-pattern files are not counted as intended deletions."""
        (sweep_root / "state.db-wal").write_text("wal")
        (sweep_root / "a.txt").write_text("a")

        result = _controller(classifier).sweep(sweep_root, budget=60, dry_run=True)

        assert result.deleted == 1
        assert result.skipped == 1


class TestAgeFilter:
    """Tests for the minimum age filter."""

    def test_recent_files_skipped(
        self, bare_classifier: PathClassifier, sweep_root: Path
    ) -> None:
        """Files newer than the minimum age are kept."""
        old = sweep_root / "old.tmp"
        old.write_text("old")
        ten_days_ago = time.time() - 10 * 86400
        os.utime(old, (ten_days_ago, ten_days_ago))
        fresh = sweep_root / "fresh.tmp"
        fresh.write_text("fresh")

        result = _controller(bare_classifier).sweep(sweep_root, budget=60, min_age_days=1)

        assert not old.exists()
        assert fresh.exists()
        assert result.deleted == 1
        assert result.skipped == 1


class TestEmptyDirectories:
    """Tests for the empty-directory pass."""

    def test_emptied_dirs_removed_root_kept(
        self, bare_classifier: PathClassifier, sweep_root: Path
    ) -> None:
        """Directories emptied by the sweep are removed, the root is not."""
        deep = sweep_root / "sub" / "deep"
        deep.mkdir(parents=True)
        (deep / "file.tmp").write_text("x")

        result = _controller(bare_classifier).sweep(sweep_root, budget=60)

        assert result.dirs_removed == 2
        assert not (sweep_root / "sub").exists()
        assert sweep_root.exists()

    def test_non_empty_dirs_kept(self, classifier: PathClassifier, sweep_root: Path) -> None:
        """A directory still holding a skipped file is kept."""
        sub = sweep_root / "sub"
        sub.mkdir()
        (sub / "state.db-wal").write_text("wal")

        result = _controller(classifier).sweep(sweep_root, budget=60)

        assert result.dirs_removed == 0
        assert (sub / "state.db-wal").exists()

    def test_young_empty_dirs_kept(
        self, bare_classifier: PathClassifier, sweep_root: Path
    ) -> None:
        """The empty-directory pass honors the minimum age."""
        old = time.time() - 3 * 86400
        stale = sweep_root / "stale"
        stale.mkdir()
        (stale / "file.tmp").write_text("x")
        os.utime(stale / "file.tmp", (old, old))
        os.utime(stale, (old, old))
        fresh = sweep_root / "installer-workdir"
        fresh.mkdir()

        result = _controller(bare_classifier).sweep(sweep_root, budget=60, min_age_days=1.0)

        assert result.deleted == 1
        assert result.dirs_removed == 1
        assert not stale.exists()
        assert fresh.is_dir()
