"""
Centralized exception hierarchy for CrossKit.

Errors fall in two groups. Adapter and validator errors (ProviderError,
CompileProbeError) are captured into InstallOutcome and ValidationCheck
records and never propagate past those boundaries. Detection and synthesis
errors (UnsupportedPlatformError, ConfigSynthesisError) terminate the run.
"""

from typing import Optional, Sequence


# ============================================================================
# Base Exceptions
# ============================================================================


class CrossKitError(Exception):
    """Base exception for all CrossKit errors."""

    def to_dict(self) -> dict:
        """Structured form used by the report."""
        return {"type": self.__class__.__name__, "message": str(self)}


# ============================================================================
# Platform Detection
# ============================================================================


class UnsupportedPlatformError(CrossKitError):
    """Raised when the host does not match any supported platform family.

    Terminal for the run: detection is deterministic, so retrying cannot help.
    """

    def __init__(self, message: str, probed: Sequence[str] = ()):
        self.probed = tuple(probed)
        super().__init__(message)


# ============================================================================
# Package Provider Exceptions
# ============================================================================


class ProviderError(CrossKitError):
    """External package manager failure for a single component.

    Carried inside an InstallOutcome rather than raised past the adapter.
    """

    def __init__(
        self,
        message: str,
        component: str = "",
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        output: str = "",
    ):
        self.component = component
        self.command = tuple(command) if command else ()
        self.returncode = returncode
        self.output = output
        super().__init__(message)

    def to_dict(self) -> dict:
        """Structured form used by the report."""
        return {
            "type": self.__class__.__name__,
            "message": str(self),
            "command": list(self.command),
            "returncode": self.returncode,
        }


class ProviderTimeoutError(ProviderError):
    """Package manager call exceeded its timeout and was killed."""

    pass


# ============================================================================
# Validation Exceptions
# ============================================================================


class CompileProbeError(CrossKitError):
    """Probe program failed to compile.

    Validation-scoped: recorded in a ValidationCheck, never triggers rollback.
    """

    def __init__(self, message: str, diagnostics: str = ""):
        self.diagnostics = diagnostics
        super().__init__(message)


class BinaryInspectionError(CrossKitError):
    """Compiled probe binary could not be read or has an unknown format."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigSynthesisError(CrossKitError):
    """Descriptor cannot be rendered into build-system files.

    Signals a programming defect, not an environment condition; always fatal.
    """

    pass


class ConfigError(CrossKitError):
    """Invalid crosskit.yaml content or command-line values."""

    pass


# ============================================================================
# Orchestration Exceptions
# ============================================================================


class InvalidStateTransition(CrossKitError):
    """Orchestrator attempted a transition its state machine does not allow."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Invalid run state transition: {current.value} -> {requested.value}"
        )


class RunCancelledError(CrossKitError):
    """Run was interrupted by the user before a component could finish."""

    pass


# ============================================================================
# Process Exceptions
# ============================================================================


class CommandTimeoutError(CrossKitError):
    """External command did not finish within its timeout."""

    def __init__(self, command: Sequence[str], timeout: float, output: str = ""):
        self.command = tuple(command)
        self.timeout = timeout
        self.output = output
        super().__init__(
            f"Command timed out after {timeout:g}s: {' '.join(self.command)}"
        )
