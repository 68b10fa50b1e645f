"""
Run-scoped undo log.

Every component a run installs pushes one inverse action. On failure the log
is unwound last-in first-out, so components are removed in reverse
installation order. Components that were already present before the run never
enter the log.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Tuple

from crosskit.providers.base import ComponentSpec, InstallOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UndoAction:
    """
    Inverse of one successful install.

    Attributes:
        component: Component that was installed
        package: Package name that was installed
        undo: Callable that removes it and reports the result
    """

    component: ComponentSpec
    package: str
    undo: Callable[[], InstallOutcome]

    def run(self) -> InstallOutcome:
        return self.undo()

    def __str__(self) -> str:
        return f"remove {self.package} ({self.component.name})"


class UndoLog:
    """
    LIFO stack of UndoAction.

    Example:
        >>> log = UndoLog()
        >>> log.push(UndoAction(spec, "gcc-aarch64-linux-gnu", undo))
        >>> for action in log.unwind():
        ...     action.run()
    """

    def __init__(self):
        self._actions: List[UndoAction] = []

    def push(self, action: UndoAction) -> None:
        logger.debug(f"Undo log: {action}")
        self._actions.append(action)

    def unwind(self) -> Iterator[UndoAction]:
        """Pop actions newest first until the log is empty."""
        while self._actions:
            yield self._actions.pop()

    @property
    def actions(self) -> Tuple[UndoAction, ...]:
        return tuple(self._actions)

    def __len__(self) -> int:
        return len(self._actions)


__all__ = ["UndoAction", "UndoLog"]
