"""
Shared utilities for CLI commands.

Provides configuration loading with command-line overrides, descriptor
resolution and report output, so every command behaves the same way.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from crosskit.config.parser import CrossKitConfig, load_config
from crosskit.core.exceptions import ConfigError
from crosskit.core.platform import PlatformProfile
from crosskit.report.reporter import (
    Reporter,
    EXIT_DETECTION_FAILED,
    EXIT_ERROR,
    EXIT_INSTALL_FAILED,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    EXIT_VALIDATION_FAILED,
    Report,
    exit_code,
    render_json,
    render_text,
    write_report,
)
from crosskit.toolchain.descriptor import ToolchainDescriptor, build_descriptor

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Management
# ============================================================================


def load_settings(args) -> CrossKitConfig:
    """
    Load crosskit.yaml and apply command-line overrides.

    Args:
        args: Parsed command-line arguments

    Returns:
        Effective configuration

    Raises:
        ConfigError: If the configuration or an override is invalid
    """
    project_root = resolve_project_root(args.project_root)
    config_path = args.config
    if config_path is not None and not config_path.is_absolute():
        config_path = project_root / config_path

    config = load_config(project_root, config_path)

    if getattr(args, "target", None):
        config.target = args.target
    if getattr(args, "sysroot", None):
        config.sysroot = str(args.sysroot)
    if getattr(args, "output_dir", None):
        config.output_dir = str(args.output_dir)

    jobs = getattr(args, "jobs", None)
    if jobs is not None:
        if jobs < 1:
            raise ConfigError(f"--jobs must be at least 1, got {jobs}")
        config.install.workers = jobs
        config.validation.workers = jobs

    timeout = getattr(args, "timeout", None)
    if timeout is not None:
        if timeout <= 0:
            raise ConfigError(f"--timeout must be positive, got {timeout}")
        config.install.timeout = timeout
        config.validation.timeout = timeout

    if getattr(args, "use_sudo", None):
        config.install.use_sudo = args.use_sudo
    if getattr(args, "no_optional", False):
        config.install.include_optional = False
    if getattr(args, "static_probe", False):
        config.validation.static_probe = True

    return config


def require_target(config: CrossKitConfig) -> str:
    """
    Return the configured target triple.

    Raises:
        ConfigError: If neither crosskit.yaml nor --target names one
    """
    if not config.target:
        raise ConfigError(
            "No target triple configured. Pass --target or set 'target' in crosskit.yaml"
        )
    return config.target


def descriptor_from_config(
    config: CrossKitConfig, profile: PlatformProfile
) -> ToolchainDescriptor:
    """Build the toolchain descriptor for the effective configuration."""
    return build_descriptor(
        target=require_target(config),
        profile=profile,
        sysroot=Path(config.sysroot) if config.sysroot else None,
        compilers=config.compilers,
        cpu_tuning=config.cpu_tuning,
        extra_flags=config.extra_flags,
    )


# ============================================================================
# Path Utilities
# ============================================================================


def resolve_project_root(path: Optional[Path] = None) -> Path:
    """
    Resolve project root directory.

    Args:
        path: Optional path (defaults to current directory)

    Returns:
        Resolved absolute path
    """
    if path is None:
        path = Path.cwd()
    return path.resolve()


def resolve_output_dir(args, config: CrossKitConfig) -> Path:
    """Output directory for generated files, relative to the project root."""
    output_dir = Path(config.output_dir)
    if not output_dir.is_absolute():
        output_dir = resolve_project_root(args.project_root) / output_dir
    return output_dir


def resolve_work_dir(args, config: CrossKitConfig) -> Optional[Path]:
    """Parent of run directories, or None for the default temp location."""
    if not config.work_dir:
        return None
    work_dir = Path(config.work_dir)
    if not work_dir.is_absolute():
        work_dir = resolve_project_root(args.project_root) / work_dir
    return work_dir


# ============================================================================
# User Interface / Output Formatting
# ============================================================================


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)


def safe_print(message: str, file=None):
    """
    Print message with safe encoding handling for limited consoles.

    Falls back to ASCII-safe marks if Unicode symbols can't be encoded.

    Args:
        message: Message to print
        file: Output file (default: stdout)
    """
    try:
        print(message, file=file)
    except UnicodeEncodeError:
        safe_message = (
            message.replace("✓", "[OK]")
            .replace("✗", "[FAIL]")
            .replace("↺", "[UNDO]")
        )
        print(safe_message, file=file)


def family_name(profile: Optional[PlatformProfile]) -> Optional[str]:
    return profile.family.value if profile is not None else None


def report_fatal(
    command: str,
    error: BaseException,
    args,
    profile: Optional[PlatformProfile] = None,
    target: Optional[str] = None,
) -> int:
    """Emit the report for a run that ended before any component work."""
    logger.error(f"{command} failed: {error}")
    report = Reporter.build(
        command,
        platform_family=family_name(profile),
        target_triple=target,
        error=error,
    )
    return emit_report(report, args)


def emit_report(report: Report, args) -> int:
    """
    Print a report, optionally persist it as JSON, and return the exit code.

    Args:
        report: Run report
        args: Parsed arguments (format, report, quiet)

    Returns:
        Process exit code
    """
    if getattr(args, "format", "text") == "json":
        safe_print(render_json(report).rstrip("\n"))
    elif not getattr(args, "quiet", False) or not report.succeeded:
        safe_print(render_text(report).rstrip("\n"))

    report_path = getattr(args, "report", None)
    if report_path is not None:
        try:
            write_report(report, report_path)
        except OSError as e:
            print_error(f"Could not write report to {report_path}", str(e))
            return exit_code(report) or EXIT_ERROR

    return exit_code(report)


__all__ = [
    "EXIT_SUCCESS",
    "EXIT_ERROR",
    "EXIT_DETECTION_FAILED",
    "EXIT_INSTALL_FAILED",
    "EXIT_VALIDATION_FAILED",
    "EXIT_INTERRUPTED",
    "load_settings",
    "require_target",
    "descriptor_from_config",
    "resolve_project_root",
    "resolve_output_dir",
    "resolve_work_dir",
    "print_error",
    "safe_print",
    "family_name",
    "report_fatal",
    "emit_report",
]
