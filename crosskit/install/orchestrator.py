"""
Installation orchestrator.

Drives one provisioning run through an explicit state machine:

    PENDING -> INSTALLING -> VALIDATING -> COMPLETE
    PENDING -> INSTALLING -> ROLLING_BACK -> FAILED

Components are installed in declaration order through a single
PackageProvider. A failed required component (or a user interrupt) stops
dispatch and unwinds the undo log, removing exactly what this run installed.
The orchestrator is the only producer of InstallOutcome records for a run.
"""

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from enum import Enum
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from crosskit.core.exceptions import (
    InvalidStateTransition,
    ProviderError,
    RunCancelledError,
)
from crosskit.install.undo import UndoAction, UndoLog
from crosskit.providers.base import (
    ComponentSpec,
    InstallOutcome,
    InstallStatus,
    OutcomePhase,
    PackageProvider,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RunState(Enum):
    """Lifecycle state of a provisioning run."""

    PENDING = "pending"
    INSTALLING = "installing"
    VALIDATING = "validating"
    ROLLING_BACK = "rolling_back"
    COMPLETE = "complete"
    FAILED = "failed"


_TRANSITIONS = {
    RunState.PENDING: {RunState.INSTALLING},
    RunState.INSTALLING: {RunState.VALIDATING, RunState.ROLLING_BACK},
    RunState.VALIDATING: {RunState.COMPLETE},
    RunState.ROLLING_BACK: {RunState.FAILED},
    RunState.COMPLETE: set(),
    RunState.FAILED: set(),
}


class InstallationOrchestrator:
    """
    Installs a component set with rollback on required failure.

    Example:
        >>> orchestrator = InstallationOrchestrator(provider, components)
        >>> outcomes = orchestrator.install()
        >>> if orchestrator.state is RunState.INSTALLING:
        ...     checks = orchestrator.validate(lambda: validator.validate(...))
    """

    def __init__(
        self,
        provider: PackageProvider,
        components: Sequence[ComponentSpec],
        workers: int = 1,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            provider: Package provider selected for the host platform
            components: Components in declaration (installation) order
            workers: Maximum concurrent installs (1 = sequential)
            cancel_event: Set by another thread to cancel the run
        """
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")

        names = [spec.name for spec in components]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate component names: {', '.join(duplicates)}")

        self.provider = provider
        self.components: Tuple[ComponentSpec, ...] = tuple(components)
        self.workers = workers
        self.cancel_event = cancel_event or threading.Event()
        self.undo_log = UndoLog()
        self._state = RunState.PENDING
        self._outcomes: List[InstallOutcome] = []

    # ------------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def outcomes(self) -> Tuple[InstallOutcome, ...]:
        """All outcomes so far: install phase in declaration order, then rollback."""
        return tuple(self._outcomes)

    def _transition(self, new_state: RunState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise InvalidStateTransition(self._state, new_state)
        logger.debug(f"Run state: {self._state.value} -> {new_state.value}")
        self._state = new_state

    # ------------------------------------------------------------------------
    # Install
    # ------------------------------------------------------------------------

    def install(self) -> Tuple[InstallOutcome, ...]:
        """
        Install every component, rolling back on required failure.

        On success the run is left in INSTALLING, ready for validate(). On
        failure or interrupt it ends in FAILED after rollback.

        Returns:
            All outcomes recorded by the run

        Raises:
            InvalidStateTransition: If the run was already started
        """
        self._transition(RunState.INSTALLING)
        provider_name = self.provider.get_name()
        logger.info(f"Installing {len(self.components)} components with {provider_name}")

        results: Dict[int, InstallOutcome] = {}
        try:
            if self.workers == 1:
                self._dispatch_sequential(results)
            else:
                self._dispatch_pooled(results)
        except KeyboardInterrupt:
            logger.warning("Interrupted, rolling back this run's installs")
            self.cancel_event.set()

        cancelled = False
        for index, spec in enumerate(self.components):
            outcome = results.get(index)
            if outcome is None:
                if self.cancel_event.is_set() and not cancelled:
                    outcome = self._cancelled(spec)
                    cancelled = True
                else:
                    outcome = InstallOutcome(
                        component=spec.name,
                        status=InstallStatus.NOT_ATTEMPTED,
                        required=spec.required,
                        package=spec.package_name_for(self.provider.family) or "",
                    )
            elif outcome.status is InstallStatus.INSTALLED:
                # Pushed in declaration order so rollback order never
                # depends on worker timing
                self.undo_log.push(
                    UndoAction(
                        component=spec,
                        package=outcome.package,
                        undo=partial(self.provider.uninstall, spec),
                    )
                )
            self._outcomes.append(outcome)

        required_failed = [o for o in self._outcomes if o.failed and o.required]
        if required_failed or cancelled:
            self._transition(RunState.ROLLING_BACK)
            self._rollback()
            self._transition(RunState.FAILED)
            reason = "cancelled" if cancelled else required_failed[0].component
            logger.error(f"Installation failed: {reason}")
        else:
            logger.info("All required components are installed")

        return self.outcomes

    def _dispatch_sequential(self, results: Dict[int, InstallOutcome]) -> None:
        for index, spec in enumerate(self.components):
            if self.cancel_event.is_set():
                return
            outcome = self._install_one(spec)
            results[index] = outcome
            if outcome.failed and outcome.required:
                return

    def _dispatch_pooled(self, results: Dict[int, InstallOutcome]) -> None:
        """Keep at most `workers` installs in flight; stop on required failure."""
        queue = list(enumerate(self.components))
        queue.reverse()
        in_flight = {}
        stop = False

        with ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="crosskit-install"
        ) as pool:
            try:
                while True:
                    while queue and not stop and len(in_flight) < self.workers:
                        if self.cancel_event.is_set():
                            stop = True
                            break
                        index, spec = queue.pop()
                        in_flight[pool.submit(self._install_one, spec)] = index

                    if not in_flight:
                        return

                    done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                    for future in done:
                        outcome = future.result()
                        results[in_flight.pop(future)] = outcome
                        if outcome.failed and outcome.required:
                            stop = True
            except KeyboardInterrupt:
                # In-flight installs finish so their outcomes can be rolled back
                self.cancel_event.set()
                for future, index in in_flight.items():
                    results[index] = future.result()
                raise

    def _install_one(self, spec: ComponentSpec) -> InstallOutcome:
        package = spec.package_name_for(self.provider.family) or ""
        try:
            if self.provider.is_installed(spec):
                outcome = InstallOutcome(
                    component=spec.name,
                    status=InstallStatus.ALREADY_PRESENT,
                    required=spec.required,
                    package=package,
                )
            else:
                outcome = self.provider.install(spec)
        except Exception as e:
            logger.debug(f"Provider raised for {spec.name}", exc_info=True)
            outcome = InstallOutcome(
                component=spec.name,
                status=InstallStatus.FAILED,
                required=spec.required,
                package=package,
                error=_as_provider_error(e, spec),
            )

        _log_outcome(outcome)
        return outcome

    def _cancelled(self, spec: ComponentSpec) -> InstallOutcome:
        return InstallOutcome(
            component=spec.name,
            status=InstallStatus.FAILED,
            required=spec.required,
            package=spec.package_name_for(self.provider.family) or "",
            error=RunCancelledError("Run cancelled before this component finished"),
        )

    # ------------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------------

    def _rollback(self) -> None:
        """Unwind the undo log; uninstall failures are recorded, not raised."""
        if not len(self.undo_log):
            logger.info("Nothing to roll back")
            return

        logger.info(f"Rolling back {len(self.undo_log)} components")
        for action in self.undo_log.unwind():
            spec = action.component
            try:
                result = action.run()
            except Exception as e:
                result = InstallOutcome(
                    component=spec.name,
                    status=InstallStatus.FAILED,
                    required=spec.required,
                    phase=OutcomePhase.UNINSTALL,
                    package=action.package,
                    error=_as_provider_error(e, spec),
                )

            if result.failed:
                logger.error(f"  ✗ {spec.name}: rollback failed: {result.error}")
                outcome = InstallOutcome(
                    component=spec.name,
                    status=InstallStatus.FAILED,
                    required=spec.required,
                    phase=OutcomePhase.ROLLBACK,
                    package=action.package,
                    error=result.error,
                    detail="left installed",
                )
            else:
                logger.info(f"  ✓ {spec.name}: rolled back")
                outcome = InstallOutcome(
                    component=spec.name,
                    status=InstallStatus.ROLLED_BACK,
                    required=spec.required,
                    phase=OutcomePhase.ROLLBACK,
                    package=action.package,
                )
            self._outcomes.append(outcome)

    # ------------------------------------------------------------------------
    # Validate
    # ------------------------------------------------------------------------

    def validate(self, fn: Callable[[], T]) -> T:
        """
        Run validation on a successful install.

        Validation results never roll back installs: the run always ends in
        COMPLETE here, and the checks themselves carry pass/fail.

        Args:
            fn: Callable performing validation

        Returns:
            Whatever fn returns

        Raises:
            InvalidStateTransition: If install() did not succeed
        """
        self._transition(RunState.VALIDATING)
        result = fn()
        self._transition(RunState.COMPLETE)
        return result

    # ------------------------------------------------------------------------
    # Uninstall
    # ------------------------------------------------------------------------

    def uninstall_all(self) -> Tuple[InstallOutcome, ...]:
        """
        Remove every installed component in reverse declaration order.

        Components that are not installed are recorded NOT_ATTEMPTED. This
        does not use the install state machine.

        Returns:
            Uninstall outcomes in removal order
        """
        logger.info(f"Removing {len(self.components)} components")
        removed = []
        for spec in reversed(self.components):
            package = spec.package_name_for(self.provider.family) or ""
            try:
                present = self.provider.is_installed(spec)
                if present:
                    outcome = self.provider.uninstall(spec)
            except Exception as e:
                present = True
                outcome = InstallOutcome(
                    component=spec.name,
                    status=InstallStatus.FAILED,
                    required=spec.required,
                    phase=OutcomePhase.UNINSTALL,
                    package=package,
                    error=_as_provider_error(e, spec),
                )

            if not present:
                outcome = InstallOutcome(
                    component=spec.name,
                    status=InstallStatus.NOT_ATTEMPTED,
                    required=spec.required,
                    phase=OutcomePhase.UNINSTALL,
                    package=package,
                    detail="not installed",
                )

            _log_outcome(outcome)
            removed.append(outcome)

        self._outcomes.extend(removed)
        return tuple(removed)


def _as_provider_error(error: Exception, spec: ComponentSpec) -> ProviderError:
    if isinstance(error, ProviderError):
        return error
    return ProviderError(f"Unexpected provider error: {error}", component=spec.name)


def _log_outcome(outcome: InstallOutcome) -> None:
    if outcome.failed:
        logger.error(f"  ✗ {outcome.component}: {outcome.error}")
    else:
        logger.info(f"  ✓ {outcome.component}: {outcome.status.value}")


__all__ = ["RunState", "InstallationOrchestrator"]
