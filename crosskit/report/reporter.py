"""
Run result aggregation and rendering.

The Reporter only reads: it turns the orchestrator's InstallOutcome records
and the validator's ValidationCheck results into a Report, which renders as
human-readable text or as versioned JSON. The exit code is derived from the
Report alone.

JSON schema (schema_version 1, fields are only ever added):

    {
      "schema_version": 1,
      "command": "install",
      "status": "complete" | "failed",
      "exit_code": 0,
      "platform_family": "debian",
      "target_triple": "aarch64-unknown-linux-gnu",
      "outcomes": [InstallOutcome.to_dict(), ...],
      "checks": [ValidationCheck.to_dict(), ...],
      "generated_files": ["/abs/path/toolchain.cmake", ...],
      "error": null | {"type": "...", "message": "..."}
    }
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from crosskit.core.exceptions import (
    CrossKitError,
    RunCancelledError,
    UnsupportedPlatformError,
)
from crosskit.core.filesystem import atomic_write
from crosskit.providers.base import InstallOutcome, InstallStatus, OutcomePhase
from crosskit.validation.validator import CheckStatus, ValidationCheck

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_DETECTION_FAILED = 2
EXIT_INSTALL_FAILED = 3
EXIT_VALIDATION_FAILED = 4
EXIT_INTERRUPTED = 130


class RunStatus(Enum):
    """Overall result of a run."""

    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class Report:
    """
    Aggregated, read-only view of one run.

    Attributes:
        command: CLI command that produced the run
        status: Overall status
        outcomes: Install, rollback and uninstall outcomes in run order
        checks: Validation results in declaration order
        platform_family: Detected platform family, if detection succeeded
        target_triple: Target triple, if known
        generated_files: Paths written by the synthesizer
        error: Fatal error that ended the run early, if any
    """

    command: str
    status: RunStatus
    outcomes: Tuple[InstallOutcome, ...] = ()
    checks: Tuple[ValidationCheck, ...] = ()
    platform_family: Optional[str] = None
    target_triple: Optional[str] = None
    generated_files: Tuple[str, ...] = ()
    error: Optional[BaseException] = field(default=None, compare=False)

    @property
    def schema_version(self) -> int:
        return SCHEMA_VERSION

    @property
    def succeeded(self) -> bool:
        return self.status is RunStatus.COMPLETE

    def to_dict(self) -> dict:
        """Structured form; keys are stable across versions."""
        return {
            "schema_version": SCHEMA_VERSION,
            "command": self.command,
            "status": self.status.value,
            "exit_code": exit_code(self),
            "platform_family": self.platform_family,
            "target_triple": self.target_triple,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "checks": [check.to_dict() for check in self.checks],
            "generated_files": list(self.generated_files),
            "error": _error_dict(self.error),
        }


def _error_dict(error: Optional[BaseException]) -> Optional[dict]:
    if error is None:
        return None
    if isinstance(error, CrossKitError):
        return error.to_dict()
    if isinstance(error, KeyboardInterrupt):
        return {"type": "KeyboardInterrupt", "message": "Interrupted by user"}
    return {"type": error.__class__.__name__, "message": str(error)}


class Reporter:
    """Builds Reports; never modifies outcomes or checks."""

    @staticmethod
    def build(
        command: str,
        outcomes: Iterable[InstallOutcome] = (),
        checks: Iterable[ValidationCheck] = (),
        platform_family: Optional[str] = None,
        target_triple: Optional[str] = None,
        generated_files: Sequence[Path] = (),
        error: Optional[BaseException] = None,
    ) -> Report:
        """
        Aggregate a run into a Report.

        The run is COMPLETE iff no required component outcome is FAILED, no
        check is FAIL, and no fatal error ended the run.

        Args:
            command: Command name
            outcomes: Orchestrator outcomes
            checks: Validator results
            platform_family: Platform family value
            target_triple: Target triple
            generated_files: Files written by the run
            error: Fatal error, if the run ended early

        Returns:
            Report
        """
        outcomes = tuple(outcomes)
        checks = tuple(checks)

        failed = (
            error is not None
            or any(o.failed and o.required for o in outcomes)
            or any(c.status is CheckStatus.FAIL for c in checks)
        )

        return Report(
            command=command,
            status=RunStatus.FAILED if failed else RunStatus.COMPLETE,
            outcomes=outcomes,
            checks=checks,
            platform_family=platform_family,
            target_triple=target_triple,
            generated_files=tuple(str(p) for p in generated_files),
            error=error,
        )


def exit_code(report: Report) -> int:
    """
    Map a report to the process exit code.

    Returns:
        0 success, 1 configuration/internal error, 2 detection failure,
        3 install failure, 4 validation failure, 130 interrupted
    """
    error = report.error
    if isinstance(error, (KeyboardInterrupt, RunCancelledError)):
        return EXIT_INTERRUPTED
    if isinstance(error, UnsupportedPlatformError):
        return EXIT_DETECTION_FAILED
    if error is not None:
        return EXIT_ERROR

    if any(isinstance(o.error, RunCancelledError) for o in report.outcomes):
        return EXIT_INTERRUPTED
    if any(o.failed and o.required for o in report.outcomes):
        return EXIT_INSTALL_FAILED
    if any(c.status is CheckStatus.FAIL for c in report.checks):
        return EXIT_VALIDATION_FAILED
    return EXIT_SUCCESS


# ============================================================================
# Rendering
# ============================================================================

_MARKS = {
    InstallStatus.INSTALLED: "✓",
    InstallStatus.ALREADY_PRESENT: "✓",
    InstallStatus.ROLLED_BACK: "↺",
    InstallStatus.REMOVED: "✓",
    InstallStatus.ALREADY_ABSENT: "✓",
    InstallStatus.FAILED: "✗",
    InstallStatus.NOT_ATTEMPTED: "-",
}

_CHECK_MARKS = {
    CheckStatus.PASS: "✓",
    CheckStatus.FAIL: "✗",
    CheckStatus.SKIPPED: "-",
    CheckStatus.PENDING: "?",
}

_SECTION_TITLES = {
    OutcomePhase.INSTALL: "Components",
    OutcomePhase.ROLLBACK: "Rollback",
    OutcomePhase.UNINSTALL: "Uninstall",
}


def render_text(report: Report) -> str:
    """
    Render a human-readable summary.

    Example:
        >>> print(render_text(report))
        CrossKit install: FAILED (exit code 3)
          Platform: debian
        ...
    """
    code = exit_code(report)
    lines = [f"CrossKit {report.command}: {report.status.name} (exit code {code})"]
    if report.platform_family:
        lines.append(f"  Platform: {report.platform_family}")
    if report.target_triple:
        lines.append(f"  Target:   {report.target_triple}")

    for phase in OutcomePhase:
        outcomes = [o for o in report.outcomes if o.phase is phase]
        if not outcomes:
            continue
        lines.append("")
        lines.append(f"{_SECTION_TITLES[phase]}:")
        width = max(len(o.component) for o in outcomes)
        for outcome in outcomes:
            line = (
                f"  {_MARKS[outcome.status]} {outcome.component:<{width}}  "
                f"{outcome.status.value}"
            )
            if not outcome.required:
                line += " (optional)"
            if outcome.package:
                line += f"  [{outcome.package}]"
            lines.append(line)
            if outcome.error is not None:
                lines.append(f"      {outcome.error}")
            elif outcome.detail:
                lines.append(f"      {outcome.detail}")

    if report.checks:
        lines.append("")
        lines.append("Validation:")
        width = max(len(c.name) for c in report.checks)
        for check in report.checks:
            lines.append(
                f"  {_CHECK_MARKS[check.status]} {check.name:<{width}}  {check.status.value}"
            )
            if check.detail:
                for detail_line in check.detail.splitlines()[:10]:
                    lines.append(f"      {detail_line}")

    if report.generated_files:
        lines.append("")
        lines.append("Generated files:")
        for path in report.generated_files:
            lines.append(f"  {path}")

    if report.error is not None:
        lines.append("")
        error = _error_dict(report.error)
        lines.append(f"Error: {error['message']}")

    return "\n".join(lines) + "\n"


def render_json(report: Report) -> str:
    """Render the structured report as indented JSON."""
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False) + "\n"


def write_report(report: Report, path: Path) -> Path:
    """Persist the JSON report (atomic write)."""
    path = Path(path)
    atomic_write(path, render_json(report))
    logger.info(f"Report written to {path}")
    return path


__all__ = [
    "SCHEMA_VERSION",
    "RunStatus",
    "Report",
    "Reporter",
    "exit_code",
    "render_text",
    "render_json",
    "write_report",
    "EXIT_SUCCESS",
    "EXIT_ERROR",
    "EXIT_DETECTION_FAILED",
    "EXIT_INSTALL_FAILED",
    "EXIT_VALIDATION_FAILED",
    "EXIT_INTERRUPTED",
]
