"""Out-of-process command execution.

Remediation hosts run reclaim unattended, so commands never inherit a
console window on Windows and their output is always captured.
"""

import logging
import os
import shutil
import subprocess
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Keep cleanmgr/dism/reg from flashing a console window on Windows
_CREATION_FLAGS = getattr(subprocess, "CREATE_NO_WINDOW", 0) if os.name == "nt" else 0


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured outcome of a finished command.

    Attributes:
        stdout: Standard output.
        stderr: Standard error.
        returncode: Exit code.
        elapsed: Wall-clock seconds the command ran.
    """

    stdout: str
    stderr: str
    returncode: int
    elapsed: float = 0.0

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Non-empty stdout and stderr, trimmed and joined."""
        return "\n".join(part.strip() for part in (self.stdout, self.stderr) if part.strip())


def run_command(args: list[str], *, timeout: float | None = 60.0) -> CommandResult:
    """Run a command to completion and capture its output.

    Undecodable output bytes are replaced rather than raising, since
    Windows tools write in the OEM code page.

    Args:
        args: Command and arguments.
        timeout: Seconds to wait before giving up.

    Returns:
        CommandResult with output, exit code and elapsed time.

    Raises:
        subprocess.TimeoutExpired: If the command exceeds the timeout.
        FileNotFoundError: If the executable does not exist.
    """
    logger.debug("Executing: %s", args)
    started = time.monotonic()
    completed = subprocess.run(
        args,
        capture_output=True,
        text=True,
        errors="replace",
        timeout=timeout,
        creationflags=_CREATION_FLAGS,
    )
    elapsed = time.monotonic() - started
    logger.debug("%s exited with %d after %.1fs", args[0], completed.returncode, elapsed)
    return CommandResult(
        stdout=completed.stdout,
        stderr=completed.stderr,
        returncode=completed.returncode,
        elapsed=elapsed,
    )


def command_exists(name: str) -> bool:
    """Check whether an executable is on PATH."""
    return shutil.which(name) is not None
