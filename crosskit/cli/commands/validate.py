"""
Validate command implementation.

Compiles probe programs with the cross toolchain and checks the architecture
of the produced binaries.
"""

import logging
from typing import List

from crosskit.cli.utils import (
    descriptor_from_config,
    emit_report,
    family_name,
    load_settings,
    report_fatal,
    resolve_output_dir,
    resolve_work_dir,
)
from crosskit.config.parser import CrossKitConfig
from crosskit.core.exceptions import ConfigError, UnsupportedPlatformError
from crosskit.core.filesystem import run_directory
from crosskit.core.platform import detect_platform
from crosskit.report.reporter import Reporter
from crosskit.toolchain.descriptor import (
    DESCRIPTOR_FILENAME,
    ToolchainDescriptor,
    load_descriptor,
)
from crosskit.validation.probes import default_checks
from crosskit.validation.validator import ValidationCheck, Validator

logger = logging.getLogger(__name__)


def run_validation(
    args, config: CrossKitConfig, descriptor: ToolchainDescriptor
) -> List[ValidationCheck]:
    """Run the default checks inside a fresh run directory."""
    validator = Validator(
        descriptor,
        timeout=config.validation.timeout,
        workers=config.validation.workers,
    )
    checks = default_checks(descriptor, static_probe=config.validation.static_probe)
    with run_directory(resolve_work_dir(args, config)) as run_dir:
        return validator.validate(checks, run_dir)


def run(args) -> int:
    """
    Run the validate command.

    The descriptor persisted by the last install or generate is used unless
    --target or --sysroot describe a different toolchain.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 success, 4 validation failure)
    """
    profile = None
    target = None
    try:
        config = load_settings(args)
        target = config.target
        descriptor_path = resolve_output_dir(args, config) / DESCRIPTOR_FILENAME

        if descriptor_path.exists() and not (args.target or args.sysroot):
            logger.info(f"Using toolchain recorded in {descriptor_path}")
            descriptor = load_descriptor(descriptor_path)
            if args.platform:
                profile = detect_platform(args.platform)
        else:
            profile = detect_platform(args.platform)
            descriptor = descriptor_from_config(config, profile)
    except (ConfigError, UnsupportedPlatformError) as e:
        return report_fatal("validate", e, args, profile=profile, target=target)

    checks = run_validation(args, config, descriptor)

    report = Reporter.build(
        "validate",
        checks=checks,
        platform_family=family_name(profile),
        target_triple=descriptor.target_triple,
    )
    return emit_report(report, args)
