"""Run logging, consolidation, and archival."""

from reclaim.logs.consolidation import ConsolidationState, LogConsolidator, make_run_stamp
from reclaim.logs.setup import RunLogging, start_run_logging, stop_run_logging

__all__ = [
    "ConsolidationState",
    "LogConsolidator",
    "RunLogging",
    "make_run_stamp",
    "start_run_logging",
    "stop_run_logging",
]
