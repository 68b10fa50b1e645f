"""
External process execution with mandatory timeouts.

Every blocking call CrossKit makes to the outside world (package managers,
compilers) goes through run_command so that a hung installer or compiler is
killed and reported instead of blocking the run.
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

from crosskit.core.exceptions import CommandTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 600.0


@dataclass(frozen=True)
class CommandResult:
    """Captured result of a finished external command."""

    argv: tuple
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr, stripped."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part).strip()


# Signature shared by run_command and the fakes used in tests
CommandRunner = Callable[..., CommandResult]


def run_command(
    argv: Sequence[str],
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    cwd: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
    input_text: Optional[str] = None,
) -> CommandResult:
    """
    Run an external command and capture its output.

    Args:
        argv: Command and arguments
        timeout: Seconds before the process is killed (None disables)
        cwd: Working directory
        env: Full environment for the child (inherits when None)
        input_text: Text written to the child's stdin

    Returns:
        CommandResult with exit status and captured output

    Raises:
        CommandTimeoutError: If the command exceeded its timeout
        FileNotFoundError: If the executable does not exist
        PermissionError: If the executable cannot be run

    Example:
        >>> result = run_command(["gcc", "--version"], timeout=10)
        >>> result.ok
        True
    """
    argv = [str(arg) for arg in argv]
    logger.debug(f"Running: {' '.join(argv)} (timeout={timeout})")

    try:
        completed = subprocess.run(
            argv,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            cwd=str(cwd) if cwd else None,
            env=env,
            input=input_text,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        # subprocess.run kills the child before re-raising
        partial = e.stdout or ""
        if isinstance(partial, bytes):
            partial = partial.decode(errors="replace")
        raise CommandTimeoutError(argv, timeout or 0.0, output=partial) from e

    if completed.returncode != 0:
        logger.debug(f"Command exited with {completed.returncode}: {argv[0]}")

    return CommandResult(
        argv=tuple(argv),
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


__all__ = ["CommandResult", "CommandRunner", "run_command", "DEFAULT_TIMEOUT"]
