"""
Cross toolchain validation.

Each ValidationCheck compiles a probe program with the cross compiler and
inspects the produced binary's header to confirm it targets the expected
architecture. Checks are independent: a failing check never prevents another
from running, and the validator only writes inside the run directory.
"""

import logging
import tempfile
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from crosskit.core.exceptions import (
    BinaryInspectionError,
    CommandTimeoutError,
    CompileProbeError,
)
from crosskit.core.process import CommandRunner, run_command
from crosskit.toolchain.descriptor import ToolchainDescriptor
from crosskit.validation.binary import inspect_architecture

logger = logging.getLogger(__name__)

DEFAULT_CHECK_TIMEOUT = 120.0

_SOURCE_SUFFIXES = {"c": ".c", "c++": ".cpp"}


class CheckStatus(Enum):
    """Status of a validation check."""

    PENDING = "pending"
    PASS = "pass"
    FAIL = "fail"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ValidationCheck:
    """
    One probe compilation and its verdict.

    A check starts PENDING; the validator returns a new record carrying the
    result rather than mutating the input.

    Attributes:
        name: Check name (e.g., 'c-probe')
        probe_source: Source code of the probe program
        expected_architecture_marker: Marker the binary must carry
        language: 'c' or 'c++' (selects cc or cxx)
        extra_flags: Flags added for this check only
        status: Check status
        detail: Explanation or compiler diagnostics
        detected_architecture_marker: Marker read from the produced binary
    """

    name: str
    probe_source: str
    expected_architecture_marker: str
    language: str = "c"
    extra_flags: Tuple[str, ...] = field(default_factory=tuple)
    status: CheckStatus = CheckStatus.PENDING
    detail: str = ""
    detected_architecture_marker: Optional[str] = None

    def __post_init__(self):
        if self.language not in _SOURCE_SUFFIXES:
            raise ValueError(f"Unsupported probe language: {self.language}")

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "language": self.language,
            "status": self.status.value,
            "expected_architecture_marker": self.expected_architecture_marker,
            "detected_architecture_marker": self.detected_architecture_marker,
            "detail": self.detail,
        }


class Validator:
    """
    Runs validation checks against a toolchain descriptor.

    Example:
        >>> validator = Validator(descriptor)
        >>> with run_directory() as run_dir:
        ...     results = validator.validate(default_checks(descriptor), run_dir)
        >>> all(c.status is CheckStatus.PASS for c in results)
        True
    """

    def __init__(
        self,
        descriptor: ToolchainDescriptor,
        runner: CommandRunner = run_command,
        timeout: float = DEFAULT_CHECK_TIMEOUT,
        workers: int = 1,
        inspector: Callable[[Path], str] = inspect_architecture,
    ):
        """
        Initialize validator.

        Args:
            descriptor: Toolchain to validate
            runner: Command runner used to invoke the compiler
            timeout: Seconds allowed per compiler invocation
            workers: Maximum checks run concurrently
            inspector: Reads the architecture marker of a binary
        """
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")

        self.descriptor = descriptor
        self.runner = runner
        self.timeout = timeout
        self.workers = workers
        self.inspector = inspector

    def validate(
        self, checks: Sequence[ValidationCheck], run_dir: Path
    ) -> List[ValidationCheck]:
        """
        Run checks and return their results in declaration order.

        Args:
            checks: Pending checks
            run_dir: Run-scoped directory; each check works in its own
                temporary subdirectory that is removed afterwards

        Returns:
            List of completed ValidationCheck
        """
        start_time = time.time()
        logger.info(f"Validating {self.descriptor.target_triple} with {len(checks)} checks")

        if self.workers == 1 or len(checks) < 2:
            results = [self._run_guarded(check, run_dir) for check in checks]
        else:
            with ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="crosskit-validate"
            ) as pool:
                results = list(pool.map(lambda c: self._run_guarded(c, run_dir), checks))

        elapsed = time.time() - start_time
        failed = [c.name for c in results if c.status is CheckStatus.FAIL]
        if failed:
            logger.error(f"✗ Validation failed ({elapsed:.2f}s): {', '.join(failed)}")
        else:
            logger.info(f"✓ Validation passed ({elapsed:.2f}s)")

        return results

    def _run_guarded(self, check: ValidationCheck, run_dir: Path) -> ValidationCheck:
        try:
            result = self.run_check(check, run_dir)
        except Exception as e:
            logger.debug(f"{check.name} raised", exc_info=True)
            result = replace(
                check, status=CheckStatus.FAIL, detail=f"Check failed with exception: {e}"
            )

        if result.status is CheckStatus.PASS:
            logger.info(f"  ✓ {result.name}: {result.detail}")
        elif result.status is CheckStatus.SKIPPED:
            logger.warning(f"  - {result.name}: skipped ({result.detail})")
        else:
            summary = result.detail.splitlines()[0] if result.detail else ""
            logger.error(f"  ✗ {result.name}: {summary}")
        return result

    def run_check(self, check: ValidationCheck, run_dir: Path) -> ValidationCheck:
        """
        Compile one probe and inspect the binary.

        Args:
            check: Pending check
            run_dir: Existing run-scoped directory

        Returns:
            New ValidationCheck with PASS, FAIL or SKIPPED status
        """
        compiler = self._compiler_for(check.language)
        if compiler is None:
            return replace(
                check,
                status=CheckStatus.SKIPPED,
                detail=f"No {check.language} compiler configured",
            )

        with tempfile.TemporaryDirectory(prefix=f"{check.name}-", dir=str(run_dir)) as tmp:
            workdir = Path(tmp)
            source = workdir / f"probe{_SOURCE_SUFFIXES[check.language]}"
            binary = workdir / "probe"
            source.write_text(check.probe_source, encoding="utf-8")

            try:
                self._compile(compiler, source, binary, check)
            except CompileProbeError as e:
                detail = str(e)
                if e.diagnostics:
                    detail = f"{detail}\n{e.diagnostics}"
                return replace(check, status=CheckStatus.FAIL, detail=detail)

            try:
                marker = self.inspector(binary)
            except BinaryInspectionError as e:
                return replace(check, status=CheckStatus.FAIL, detail=str(e))

        if marker != check.expected_architecture_marker:
            return replace(
                check,
                status=CheckStatus.FAIL,
                detected_architecture_marker=marker,
                detail=(
                    f"Binary targets {marker}, "
                    f"expected {check.expected_architecture_marker}"
                ),
            )

        return replace(
            check,
            status=CheckStatus.PASS,
            detected_architecture_marker=marker,
            detail=f"Binary targets {marker}",
        )

    def _compiler_for(self, language: str) -> Optional[Path]:
        compilers = self.descriptor.compilers
        return compilers.cxx if language == "c++" else compilers.cc

    def _compile(
        self, compiler: Path, source: Path, binary: Path, check: ValidationCheck
    ) -> None:
        argv = [
            str(compiler),
            *self.descriptor.compile_flags(),
            *check.extra_flags,
            str(source),
            "-o",
            str(binary),
        ]

        try:
            result = self.runner(argv, timeout=self.timeout, cwd=source.parent)
        except CommandTimeoutError as e:
            raise CompileProbeError(
                f"Compiler timed out after {self.timeout:g}s", diagnostics=e.output
            ) from e
        except FileNotFoundError as e:
            raise CompileProbeError(f"Compiler not found: {compiler}") from e
        except OSError as e:
            raise CompileProbeError(f"Cannot run compiler {compiler}: {e}") from e

        if not result.ok:
            raise CompileProbeError(
                f"Compilation failed with exit code {result.returncode}",
                diagnostics=result.output[-4000:],
            )

        if not binary.exists():
            raise CompileProbeError("Compiler reported success but produced no binary")


__all__ = [
    "CheckStatus",
    "ValidationCheck",
    "Validator",
    "DEFAULT_CHECK_TIMEOUT",
]
