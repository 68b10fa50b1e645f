"""
Package provider abstraction for CrossKit.

This module defines the installable unit (ComponentSpec), the immutable record
of what happened to it (InstallOutcome), and the capability interface every
platform adapter implements (PackageProvider).

Classes:
    ComponentSpec: One installable unit of the cross toolchain
    InstallStatus: Outcome status values
    InstallOutcome: Immutable per-component result record
    PackageProvider: Abstract capability interface over a package manager
    CommandPackageProvider: Shared implementation for CLI package managers

The adapter boundary is strict: install and uninstall never raise. External
failures become a ProviderError carried inside a FAILED outcome. A failed
query is such a failure too; it is never read as "not installed".
"""

import logging
import os
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Sequence

from crosskit.core.exceptions import (
    CommandTimeoutError,
    CrossKitError,
    ProviderError,
    ProviderTimeoutError,
)
from crosskit.core.locking import LockManager, LockTimeout
from crosskit.core.platform import PlatformFamily
from crosskit.core.process import DEFAULT_TIMEOUT, CommandResult, run_command

logger = logging.getLogger(__name__)


# =============================================================================
# Components and Outcomes
# =============================================================================


@dataclass(frozen=True)
class ComponentSpec:
    """
    One installable unit of a cross toolchain (compiler, binutils, headers...).

    Attributes:
        name: Component name used in reports (e.g., 'compiler')
        canonical_package_name: Package name used when no override applies
        package_name_overrides: Per-family package names; None marks a
            component that the family does not package
        required: Whether failure aborts and rolls back the run

    Example:
        ComponentSpec(
            name='binutils',
            canonical_package_name='binutils-aarch64-linux-gnu',
            package_name_overrides={PlatformFamily.ARCH: 'aarch64-linux-gnu-binutils'},
        )
    """

    name: str
    canonical_package_name: str
    package_name_overrides: Mapping[PlatformFamily, Optional[str]] = field(
        default_factory=dict
    )
    required: bool = True

    def __post_init__(self):
        if not self.name:
            raise ValueError("Component name cannot be empty")
        if not self.canonical_package_name:
            raise ValueError(f"Component '{self.name}' has no package name")
        object.__setattr__(
            self,
            "package_name_overrides",
            MappingProxyType(dict(self.package_name_overrides)),
        )

    def __hash__(self):
        return hash((self.name, self.canonical_package_name, self.required))

    def package_name_for(self, family: PlatformFamily) -> Optional[str]:
        """Package name on the given family, or None if it is not packaged."""
        if family in self.package_name_overrides:
            return self.package_name_overrides[family]
        return self.canonical_package_name


class InstallStatus(Enum):
    """Status of one component in one phase of a run."""

    INSTALLED = "installed"
    ALREADY_PRESENT = "already_present"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"
    REMOVED = "removed"
    ALREADY_ABSENT = "already_absent"
    NOT_ATTEMPTED = "not_attempted"


class OutcomePhase(Enum):
    """Which part of a run produced an outcome."""

    INSTALL = "install"
    ROLLBACK = "rollback"
    UNINSTALL = "uninstall"


@dataclass(frozen=True)
class InstallOutcome:
    """
    Result for one component. Never mutated; a retry or rollback creates a
    new record.

    Attributes:
        component: Component name
        status: Outcome status
        required: Copied from the ComponentSpec
        phase: Run phase that produced the outcome
        package: Resolved package name (empty if none)
        error: ProviderError (or RunCancelledError) for failed outcomes
        detail: Free-form explanation
    """

    component: str
    status: InstallStatus
    required: bool = True
    phase: OutcomePhase = OutcomePhase.INSTALL
    package: str = ""
    error: Optional[CrossKitError] = None
    detail: str = ""

    @property
    def failed(self) -> bool:
        return self.status is InstallStatus.FAILED

    def to_dict(self) -> dict:
        """Structured form used by the report."""
        return {
            "component": self.component,
            "status": self.status.value,
            "required": self.required,
            "phase": self.phase.value,
            "package": self.package,
            "error": self.error.to_dict() if self.error else None,
            "detail": self.detail,
        }


# =============================================================================
# Abstract Package Provider
# =============================================================================


class PackageProvider(ABC):
    """
    Capability interface over one host package manager.

    Adapters are individually substitutable; the orchestrator only ever talks
    to this interface.

    Abstract Methods:
        is_installed(): Whether the component's package is present
        install(): Install the component, idempotently
        uninstall(): Remove the component
    """

    provider_id: str = ""
    family: PlatformFamily = PlatformFamily.UNSUPPORTED

    @abstractmethod
    def is_installed(self, component: ComponentSpec) -> bool:
        """
        Check whether the component is present on the host.

        Raises:
            ProviderError: If the package manager could not be queried
        """
        pass

    @abstractmethod
    def install(self, component: ComponentSpec) -> InstallOutcome:
        """
        Install a component.

        Must report ALREADY_PRESENT, without side effects, when the component
        is installed. Must not raise: failures are returned as FAILED outcomes.
        """
        pass

    @abstractmethod
    def uninstall(self, component: ComponentSpec) -> InstallOutcome:
        """
        Remove a component.

        Returns REMOVED, ALREADY_ABSENT or FAILED. Must not raise.
        """
        pass

    def get_name(self) -> str:
        return self.provider_id


# =============================================================================
# Command-line Package Managers
# =============================================================================


_PERMISSION_MARKERS = (
    "are you root",
    "permission denied",
    "must be root",
    "you need to be root",
    "a password is required",
)


class CommandPackageProvider(PackageProvider):
    """
    Shared implementation for package managers driven through a CLI.

    Subclasses supply the query / install / remove command lines. Mutating
    calls run under the provider's file lock, optionally prefixed with sudo.
    """

    requires_root = True

    def __init__(
        self,
        runner: Callable[..., CommandResult] = run_command,
        timeout: float = DEFAULT_TIMEOUT,
        use_sudo: str = "auto",
        lock_manager: Optional[LockManager] = None,
        which: Callable[[str], Optional[str]] = shutil.which,
    ):
        """
        Initialize provider.

        Args:
            runner: Command runner (run_command or a test double)
            timeout: Seconds allowed per package manager call
            use_sudo: 'auto', 'always' or 'never'
            lock_manager: Lock manager for mutating calls (default created)
            which: Executable lookup used for sudo detection
        """
        if use_sudo not in ("auto", "always", "never"):
            raise ValueError(f"Invalid use_sudo value: {use_sudo}")

        self.runner = runner
        self.timeout = timeout
        self.use_sudo = use_sudo
        self.lock_manager = lock_manager or LockManager()
        self._which = which

    # -- subclass hooks -------------------------------------------------------

    @abstractmethod
    def _query_command(self, package: str) -> List[str]:
        pass

    @abstractmethod
    def _install_command(self, package: str) -> List[str]:
        pass

    @abstractmethod
    def _uninstall_command(self, package: str) -> List[str]:
        pass

    def _query_succeeded(self, result: CommandResult) -> bool:
        return result.ok

    # -- capability interface -------------------------------------------------

    def is_installed(self, component: ComponentSpec) -> bool:
        package = component.package_name_for(self.family)
        if not package:
            return False

        argv = self._query_command(package)
        try:
            result = self.runner(argv, timeout=self.timeout)
        except CommandTimeoutError as e:
            raise ProviderTimeoutError(
                f"{self.provider_id} query timed out after {self.timeout:g}s",
                component=component.name,
                command=argv,
                output=e.output,
            ) from e
        except OSError as e:
            raise ProviderError(
                f"Could not query {package} with {self.provider_id}: {e}",
                component=component.name,
                command=argv,
            ) from e

        return self._query_succeeded(result)

    def install(self, component: ComponentSpec) -> InstallOutcome:
        package = component.package_name_for(self.family)
        if not package:
            return self._failed(
                component,
                "",
                ProviderError(
                    f"No {self.family.value} package provides '{component.name}'",
                    component=component.name,
                ),
            )

        try:
            present = self.is_installed(component)
        except ProviderError as e:
            return self._failed(component, package, e)

        if present:
            logger.debug(f"{package} already installed")
            return InstallOutcome(
                component=component.name,
                status=InstallStatus.ALREADY_PRESENT,
                required=component.required,
                package=package,
            )

        logger.info(f"Installing {package} via {self.provider_id}")
        error = self._run_mutation(self._install_command(package), component)
        if error:
            return self._failed(component, package, error)

        return InstallOutcome(
            component=component.name,
            status=InstallStatus.INSTALLED,
            required=component.required,
            package=package,
        )

    def uninstall(self, component: ComponentSpec) -> InstallOutcome:
        package = component.package_name_for(self.family)
        try:
            present = bool(package) and self.is_installed(component)
        except ProviderError as e:
            return self._failed(component, package, e, OutcomePhase.UNINSTALL)

        if not present:
            return InstallOutcome(
                component=component.name,
                status=InstallStatus.ALREADY_ABSENT,
                required=component.required,
                phase=OutcomePhase.UNINSTALL,
                package=package or "",
            )

        logger.info(f"Removing {package} via {self.provider_id}")
        error = self._run_mutation(self._uninstall_command(package), component)
        if error:
            return self._failed(component, package, error, OutcomePhase.UNINSTALL)

        return InstallOutcome(
            component=component.name,
            status=InstallStatus.REMOVED,
            required=component.required,
            phase=OutcomePhase.UNINSTALL,
            package=package,
        )

    # -- helpers --------------------------------------------------------------

    def _privileged(self, argv: Sequence[str]) -> List[str]:
        argv = list(argv)
        if not self.requires_root or self.use_sudo == "never":
            return argv
        if self.use_sudo == "always":
            return ["sudo", "-n"] + argv
        is_root = hasattr(os, "geteuid") and os.geteuid() == 0
        if not is_root and self._which("sudo"):
            return ["sudo", "-n"] + argv
        return argv

    def _run_mutation(
        self, argv: Sequence[str], component: ComponentSpec
    ) -> Optional[ProviderError]:
        """Run an install/remove command; translate every failure to ProviderError."""
        argv = self._privileged(argv)

        try:
            with self.lock_manager.provider_lock(self.provider_id, timeout=self.timeout):
                result = self.runner(argv, timeout=self.timeout)
        except CommandTimeoutError as e:
            return ProviderTimeoutError(
                f"{self.provider_id} timed out after {self.timeout:g}s",
                component=component.name,
                command=argv,
                output=e.output,
            )
        except LockTimeout:
            return ProviderError(
                f"Timed out waiting for the {self.provider_id} lock",
                component=component.name,
                command=argv,
            )
        except PermissionError as e:
            return ProviderError(
                f"Permission denied running {argv[0]}: {e}",
                component=component.name,
                command=argv,
            )
        except FileNotFoundError:
            return ProviderError(
                f"Package manager executable not found: {argv[0]}",
                component=component.name,
                command=argv,
            )
        except OSError as e:
            return ProviderError(
                f"Failed to run {argv[0]}: {e}", component=component.name, command=argv
            )

        if result.ok:
            return None

        output = result.output
        lowered = output.lower()
        if any(marker in lowered for marker in _PERMISSION_MARKERS):
            message = f"{self.provider_id} lacks permission (exit {result.returncode})"
        else:
            message = f"{self.provider_id} exited with code {result.returncode}"

        return ProviderError(
            message,
            component=component.name,
            command=argv,
            returncode=result.returncode,
            output=output[-2000:],
        )

    def _failed(
        self,
        component: ComponentSpec,
        package: str,
        error: ProviderError,
        phase: OutcomePhase = OutcomePhase.INSTALL,
    ) -> InstallOutcome:
        logger.error(f"{component.name}: {error}")
        return InstallOutcome(
            component=component.name,
            status=InstallStatus.FAILED,
            required=component.required,
            phase=phase,
            package=package,
            error=error,
        )


__all__ = [
    "ComponentSpec",
    "InstallStatus",
    "OutcomePhase",
    "InstallOutcome",
    "PackageProvider",
    "CommandPackageProvider",
]
