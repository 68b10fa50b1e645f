"""
Fake package providers and command runners.

FakeProvider keeps installed components in memory and fails on demand.
ScriptedRunner replaces run_command for the real adapters and records every
command line it receives.
"""

import threading
from typing import Callable, Iterable, List, Optional, Tuple, Union

from crosskit.core.exceptions import ProviderError
from crosskit.core.platform import PlatformFamily
from crosskit.core.process import CommandResult
from crosskit.providers.base import (
    ComponentSpec,
    InstallOutcome,
    InstallStatus,
    OutcomePhase,
    PackageProvider,
)


def command_result(returncode: int = 0, stdout: str = "", stderr: str = "") -> CommandResult:
    """Build a CommandResult for scripted responses."""
    return CommandResult(argv=(), returncode=returncode, stdout=stdout, stderr=stderr)


class FakeProvider(PackageProvider):
    """In-memory package provider."""

    provider_id = "fake"
    family = PlatformFamily.DEBIAN

    def __init__(
        self,
        installed: Iterable[str] = (),
        fail_install: Iterable[str] = (),
        fail_uninstall: Iterable[str] = (),
        on_install: Optional[Callable[[ComponentSpec], None]] = None,
    ):
        """
        Args:
            installed: Component names present before the run
            fail_install: Component names whose install fails
            fail_uninstall: Component names whose removal fails
            on_install: Hook called at the start of every install()
        """
        self.installed = set(installed)
        self.fail_install = set(fail_install)
        self.fail_uninstall = set(fail_uninstall)
        self.on_install = on_install
        self.calls: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def _record(self, action: str, name: str):
        with self._lock:
            self.calls.append((action, name))

    def mutations(self) -> List[Tuple[str, str]]:
        """install/uninstall calls, without queries."""
        return [call for call in self.calls if call[0] != "is_installed"]

    def is_installed(self, component: ComponentSpec) -> bool:
        self._record("is_installed", component.name)
        return component.name in self.installed

    def install(self, component: ComponentSpec) -> InstallOutcome:
        self._record("install", component.name)
        if self.on_install is not None:
            self.on_install(component)

        package = component.package_name_for(self.family) or ""
        if component.name in self.installed:
            status = InstallStatus.ALREADY_PRESENT
        elif component.name in self.fail_install:
            return InstallOutcome(
                component=component.name,
                status=InstallStatus.FAILED,
                required=component.required,
                package=package,
                error=ProviderError(
                    f"fake exited with code 100 for {package}",
                    component=component.name,
                    returncode=100,
                ),
            )
        else:
            self.installed.add(component.name)
            status = InstallStatus.INSTALLED

        return InstallOutcome(
            component=component.name,
            status=status,
            required=component.required,
            package=package,
        )

    def uninstall(self, component: ComponentSpec) -> InstallOutcome:
        self._record("uninstall", component.name)
        package = component.package_name_for(self.family) or ""

        if component.name in self.fail_uninstall:
            return InstallOutcome(
                component=component.name,
                status=InstallStatus.FAILED,
                required=component.required,
                phase=OutcomePhase.UNINSTALL,
                package=package,
                error=ProviderError("fake could not remove", component=component.name),
            )

        if component.name not in self.installed:
            status = InstallStatus.ALREADY_ABSENT
        else:
            self.installed.discard(component.name)
            status = InstallStatus.REMOVED

        return InstallOutcome(
            component=component.name,
            status=status,
            required=component.required,
            phase=OutcomePhase.UNINSTALL,
            package=package,
        )


Response = Union[CommandResult, BaseException]


class ScriptedRunner:
    """
    Stand-in for run_command.

    Responses are matched by substring against the joined command line; the
    first match wins. Unmatched commands succeed with empty output.

    Example:
        >>> runner = ScriptedRunner([("dpkg-query", command_result(1))])
        >>> provider = AptProvider(runner=runner, use_sudo="never")
    """

    def __init__(self, responses: Iterable[Tuple[str, Response]] = ()):
        self.responses = list(responses)
        self.calls: List[List[str]] = []
        self.timeouts: List[Optional[float]] = []

    def __call__(self, argv, timeout=None, cwd=None, env=None, input_text=None):
        argv = [str(a) for a in argv]
        self.calls.append(argv)
        self.timeouts.append(timeout)

        line = " ".join(argv)
        for pattern, response in self.responses:
            if pattern in line:
                if isinstance(response, BaseException):
                    raise response
                return CommandResult(
                    argv=tuple(argv),
                    returncode=response.returncode,
                    stdout=response.stdout,
                    stderr=response.stderr,
                )

        return CommandResult(argv=tuple(argv), returncode=0, stdout="", stderr="")

    def commands(self, program: str) -> List[List[str]]:
        """Recorded command lines that invoke program (sudo and env skipped)."""
        return [argv for argv in self.calls if program in argv]
