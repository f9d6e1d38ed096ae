"""Run logging setup.

Attaches a plain-text file handler for the per-run temp log and a Rich
console handler that echoes the same records. Both are detached and
closed before the temp log is merged, so no handle is held on it.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from reclaim.core.errors import LogIOError

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Logger all package modules propagate to
ROOT_LOGGER_NAME = "reclaim"


@dataclass(slots=True)
class RunLogging:
    """Handlers attached for the duration of one run.

    Attributes:
        temp_log: Path of the per-run temp log.
        file_handler: Handler writing the temp log.
        console_handler: Handler echoing records to the console (optional).
    """

    temp_log: Path
    file_handler: logging.FileHandler
    console_handler: logging.Handler | None = None


def start_run_logging(
    temp_log: Path,
    *,
    console: Console | None = None,
    verbose: bool = False,
    echo: bool = True,
) -> RunLogging:
    """Open the temp log and attach handlers to the package logger.

    Args:
        temp_log: Path of the per-run temp log.
        console: Rich console for the echo (None = Rich default).
        verbose: Log DEBUG records as well.
        echo: Echo records to the console.

    Returns:
        RunLogging handle to pass to stop_run_logging().

    Raises:
        LogIOError: If the temp log cannot be created. This is the one
            condition that aborts a run.
    """
    level = logging.DEBUG if verbose else logging.INFO

    try:
        temp_log.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(temp_log, mode="a", encoding="utf-8")
    except OSError as e:
        raise LogIOError(f"Cannot create run log {temp_log}", e) from e

    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(level)
    package_logger.addHandler(file_handler)

    console_handler: logging.Handler | None = None
    if echo:
        console_handler = RichHandler(
            console=console,
            show_path=False,
            markup=False,
            rich_tracebacks=False,
            log_time_format=f"[{DATE_FORMAT}]",
        )
        console_handler.setLevel(level)
        package_logger.addHandler(console_handler)

    return RunLogging(temp_log=temp_log, file_handler=file_handler, console_handler=console_handler)


def stop_run_logging(run_logging: RunLogging) -> None:
    """Detach and close the file handler; keep the console echo.

    The console handler stays attached so that consolidation messages
    are still shown; it is removed by detach_console().
    """
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.removeHandler(run_logging.file_handler)
    run_logging.file_handler.close()


def detach_console(run_logging: RunLogging) -> None:
    """Remove the console echo handler, if any."""
    if run_logging.console_handler is not None:
        logging.getLogger(ROOT_LOGGER_NAME).removeHandler(run_logging.console_handler)
        run_logging.console_handler = None
