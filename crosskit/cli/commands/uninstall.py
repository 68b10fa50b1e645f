"""
Uninstall command implementation.

Removes the cross toolchain components in reverse order and, with --purge,
the generated files.
"""

import logging
from pathlib import Path
from typing import List

from crosskit.cli.commands.install import make_provider, select_components
from crosskit.cli.utils import (
    emit_report,
    load_settings,
    report_fatal,
    require_target,
    resolve_output_dir,
)
from crosskit.core.exceptions import ConfigError, UnsupportedPlatformError
from crosskit.core.platform import detect_platform
from crosskit.cross.targets import TargetTriple
from crosskit.generators.synthesizer import generated_filenames
from crosskit.install.orchestrator import InstallationOrchestrator
from crosskit.report.reporter import Reporter
from crosskit.toolchain.descriptor import DESCRIPTOR_FILENAME

logger = logging.getLogger(__name__)


def purge_generated_files(output_dir: Path, target_triple: str) -> List[Path]:
    """Delete files CrossKit generated for a target; other files are kept."""
    removed = []
    for name in generated_filenames(target_triple) + [DESCRIPTOR_FILENAME]:
        path = output_dir / name
        if path.is_file():
            path.unlink()
            removed.append(path)
            logger.info(f"Removed {path}")

    if output_dir.is_dir() and not any(output_dir.iterdir()):
        output_dir.rmdir()

    return removed


def run(args) -> int:
    """
    Run the uninstall command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 success, 3 if a required component could not be removed)
    """
    profile = None
    target = None
    try:
        config = load_settings(args)
        target = require_target(config)
        triple = TargetTriple.parse(target)
        profile = detect_platform(args.platform)
    except (ConfigError, UnsupportedPlatformError) as e:
        return report_fatal("uninstall", e, args, profile=profile, target=target)

    orchestrator = InstallationOrchestrator(
        make_provider(args, config, profile),
        select_components(config, triple, include_optional=True),
    )
    outcomes = orchestrator.uninstall_all()

    if args.purge:
        purge_generated_files(resolve_output_dir(args, config), triple.original)

    report = Reporter.build(
        "uninstall",
        outcomes=outcomes,
        platform_family=profile.family.value,
        target_triple=triple.original,
    )
    return emit_report(report, args)
