"""Remediation run orchestration.

Sequences the category sweeps and the external tool steps for one run,
then consolidates and archives the run log. Per-category failures never
change the outcome of the run; they only show up in the log and the
returned report.
"""

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from rich.console import Console

from reclaim.core.categories import (
    CLEANMGR_STEP,
    DISM_STEP,
    EVENT_LOGS_STEP,
    CleanupCategory,
    default_categories,
)
from reclaim.core.config import CleanupConfig
from reclaim.filesystem.models import ProbeSnapshot, SweepResult
from reclaim.filesystem.operator import RetryingRemover
from reclaim.filesystem.probe import ProbeEngine, delta
from reclaim.filesystem.protected import PathClassifier
from reclaim.filesystem.sweeper import SweepController
from reclaim.filesystem.walker import SafeTreeWalker
from reclaim.logs.consolidation import ConsolidationState, LogConsolidator, make_run_stamp
from reclaim.logs.setup import detach_console, start_run_logging, stop_run_logging
from reclaim.tools.external import (
    ToolResult,
    export_and_clear_event_logs,
    run_cleanmgr,
    run_dism_cleanup,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CategoryReport:
    """Outcome of sweeping one category.

    Attributes:
        name: Category name.
        results: One SweepResult per root.
        freed_bytes: Before/after probe delta (None in dry-run).
    """

    name: str
    results: list[SweepResult] = field(default_factory=list)
    freed_bytes: int | None = None

    @property
    def deleted(self) -> int:
        return sum(r.deleted for r in self.results)

    @property
    def skipped(self) -> int:
        return sum(r.skipped for r in self.results)

    @property
    def failed(self) -> int:
        return sum(r.failed for r in self.results)

    @property
    def swept_bytes(self) -> int:
        return sum(r.bytes_freed for r in self.results)


@dataclass(slots=True)
class RunReport:
    """Outcome of a complete remediation run.

    Attributes:
        stamp: Run timestamp.
        dry_run: Whether the run only recorded intents.
        categories: Per-category sweep reports.
        tools: External tool results.
        merge_state: Outcome of merging the temp log into the main log.
        log_state: Final state of the run log.
    """

    stamp: str
    dry_run: bool
    categories: list[CategoryReport] = field(default_factory=list)
    tools: list[ToolResult] = field(default_factory=list)
    merge_state: ConsolidationState = ConsolidationState.ACTIVE
    log_state: ConsolidationState = ConsolidationState.ACTIVE

    @property
    def exit_code(self) -> int:
        """Per-category and tool failures do not affect the exit code."""
        return 0


class CleanupRunner:
    """Runs the configured categories and tool steps once.

    Args:
        config: Loaded cleanup configuration.
        categories: Categories to sweep (defaults to the host's standard set).
        run_stamp: Timestamp identifying this run.
        sleep: Sleep function for retries and merge backoff.
        clock: Monotonic clock for sweep budgets.
    """

    def __init__(
        self,
        config: CleanupConfig,
        categories: list[CleanupCategory] | None = None,
        *,
        run_stamp: str | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._categories = categories if categories is not None else default_categories()
        self._stamp = run_stamp or make_run_stamp()
        self._sleep = sleep
        self._clock = clock

        self.consolidator = LogConsolidator(config, self._stamp, sleep=sleep)
        self.classifier = PathClassifier.from_config(config, self.consolidator.run_archive_file)

    @property
    def categories(self) -> list[CleanupCategory]:
        return self._categories

    def select(self, names: Iterable[str] | None) -> list[CleanupCategory]:
        """Categories that are enabled and, if names are given, selected."""
        wanted = {n.lower() for n in names} if names else None
        return [
            c
            for c in self._categories
            if self._config.category(c.name).enabled
            and (wanted is None or c.name.lower() in wanted)
        ]

    def _step_selected(self, step: str, names: Iterable[str] | None) -> bool:
        if not self._config.category(step).enabled:
            return False
        return not names or step in {n.lower() for n in names}

    def _components(self, category: CleanupCategory) -> tuple[SweepController, ProbeEngine]:
        classifier = self.classifier
        if category.skip_exempt:
            classifier = classifier.without_skip(category.skip_exempt)
        walker = SafeTreeWalker(classifier)
        remover = RetryingRemover(
            classifier,
            self._config.effective_max_retries,
            self._config.effective_retry_delay,
            sleep=self._sleep,
        )
        controller = SweepController(walker, remover, classifier, clock=self._clock)
        # Separate walker so probing never disturbs the sweep's pruned set
        return controller, ProbeEngine(SafeTreeWalker(classifier))

    # =========================================================================
    # Run
    # =========================================================================

    def run(
        self,
        *,
        dry_run: bool = False,
        force: bool = False,
        only: Iterable[str] | None = None,
        verbose: bool = False,
        console: Console | None = None,
        echo: bool = True,
    ) -> RunReport:
        """Execute one remediation run.

        Args:
            dry_run: Log intents without deleting or running tools.
            force: Run DISM even when a reboot is pending.
            only: Restrict the run to these category/step names.
            verbose: Log DEBUG records.
            console: Rich console for the log echo.
            echo: Echo log records to the console.

        Returns:
            RunReport for the run.

        Raises:
            LogIOError: If the temp log cannot be established.
        """
        only = list(only) if only else None
        report = RunReport(stamp=self._stamp, dry_run=dry_run)

        # Runs before the temp log is reopened; reported once logging is up
        recovered = self.consolidator.recover_stale_temp_log()
        run_logging = start_run_logging(
            self._config.effective_temp_log,
            console=console,
            verbose=verbose,
            echo=echo,
        )

        try:
            logger.info(
                "Run %s started%s (fast I/O: %s)",
                self._stamp,
                " in dry-run mode" if dry_run else "",
                "on" if self._config.fast_io else "off",
            )
            if recovered is not None:
                logger.info("Recovered temp log from an unfinished run into %s", recovered)
            for category in self.select(only):
                report.categories.append(self._run_category(category, dry_run))

            report.tools.extend(self._run_tools(dry_run=dry_run, force=force, only=only))

            logger.info(
                "Run %s finished: deleted=%d skipped=%d failed=%d",
                self._stamp,
                sum(c.deleted for c in report.categories),
                sum(c.skipped for c in report.categories),
                sum(c.failed for c in report.categories),
            )
        finally:
            stop_run_logging(run_logging)
            report.merge_state = self.consolidator.merge()
            report.log_state = self.consolidator.archive()
            self.consolidator.prune_archives()
            detach_console(run_logging)

        return report

    def _run_category(self, category: CleanupCategory, dry_run: bool) -> CategoryReport:
        overrides = self._config.category(category.name)
        budget = overrides.budget_seconds or self._config.sweep_budget_seconds
        min_age = (
            overrides.min_age_days if overrides.min_age_days is not None else category.min_age_days
        )
        controller, probe = self._components(category)
        report = CategoryReport(name=category.name)

        logger.info("Category %s: %s", category.name, category.description)
        before: ProbeSnapshot | None = None
        if not dry_run:
            before = probe.probe(category.roots, ignore_prune=category.trusted)

        for root in category.roots:
            report.results.append(
                controller.sweep(root, budget, dry_run=dry_run, min_age_days=min_age)
            )

        if before is not None:
            after = probe.probe(category.roots, ignore_prune=category.trusted)
            report.freed_bytes = sum(delta(before, after).values())
            logger.info(
                "Category %s freed %d bytes (probe delta, may differ from swept bytes %d)",
                category.name,
                report.freed_bytes,
                report.swept_bytes,
            )
        return report

    def _run_tools(
        self,
        *,
        dry_run: bool,
        force: bool,
        only: list[str] | None,
    ) -> list[ToolResult]:
        results: list[ToolResult] = []
        if self._step_selected(EVENT_LOGS_STEP, only) and self._config.event_logs:
            results.extend(
                export_and_clear_event_logs(
                    self._config.event_logs,
                    self._config.effective_archive_dir,
                    self._stamp,
                    dry_run=dry_run,
                )
            )
        if self._step_selected(DISM_STEP, only) and self._config.run_dism:
            results.append(run_dism_cleanup(force=force, dry_run=dry_run))
        if self._step_selected(CLEANMGR_STEP, only):
            results.append(
                run_cleanmgr(
                    self._config.cleanmgr_categories,
                    self._config.cleanmgr_sageset,
                    dry_run=dry_run,
                )
            )
        return results

    # =========================================================================
    # Estimate
    # =========================================================================

    def estimate(self, only: Iterable[str] | None = None) -> dict[str, ProbeSnapshot]:
        """Probe the selected categories without sweeping.

        Pruning is honored (except for trusted categories), so estimates
        reflect what a sweep would touch; actual freed bytes can differ.

        Returns:
            Mapping of category name to its probe snapshot.
        """
        estimates: dict[str, ProbeSnapshot] = {}
        for category in self.select(only):
            _, probe = self._components(category)
            estimates[category.name] = probe.probe(category.roots, ignore_prune=category.trusted)
        return estimates
