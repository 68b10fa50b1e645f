"""Run reports: aggregation, text/JSON rendering and exit codes."""

from crosskit.report.reporter import (
    EXIT_DETECTION_FAILED,
    EXIT_ERROR,
    EXIT_INSTALL_FAILED,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    EXIT_VALIDATION_FAILED,
    SCHEMA_VERSION,
    Report,
    Reporter,
    RunStatus,
    exit_code,
    render_json,
    render_text,
    write_report,
)

__all__ = [
    "SCHEMA_VERSION",
    "Report",
    "Reporter",
    "RunStatus",
    "exit_code",
    "render_json",
    "render_text",
    "write_report",
    "EXIT_SUCCESS",
    "EXIT_ERROR",
    "EXIT_DETECTION_FAILED",
    "EXIT_INSTALL_FAILED",
    "EXIT_VALIDATION_FAILED",
    "EXIT_INTERRUPTED",
]
