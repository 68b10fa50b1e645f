"""Installation orchestration with undo-log rollback."""

from crosskit.install.orchestrator import InstallationOrchestrator, RunState
from crosskit.install.undo import UndoAction, UndoLog

__all__ = ["InstallationOrchestrator", "RunState", "UndoAction", "UndoLog"]
