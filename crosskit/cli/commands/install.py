"""
Install command implementation.

Detects the host, installs the cross toolchain components (rolling back on
failure), writes the build-system files and validates the result.
"""

import logging
from pathlib import Path
from typing import List

from crosskit.cli.commands.generate import write_environment
from crosskit.cli.commands.validate import run_validation
from crosskit.cli.utils import (
    descriptor_from_config,
    emit_report,
    load_settings,
    report_fatal,
    require_target,
    resolve_output_dir,
    resolve_work_dir,
)
from crosskit.config.parser import CrossKitConfig
from crosskit.core.exceptions import (
    ConfigError,
    ConfigSynthesisError,
    UnsupportedPlatformError,
)
from crosskit.core.filesystem import FilesystemError
from crosskit.core.locking import LockManager
from crosskit.core.platform import PlatformProfile, detect_platform
from crosskit.cross.components import components_for_target
from crosskit.cross.targets import TargetTriple
from crosskit.generators.synthesizer import synthesize
from crosskit.install.orchestrator import InstallationOrchestrator, RunState
from crosskit.providers.base import ComponentSpec, PackageProvider
from crosskit.providers.registry import create_provider
from crosskit.report.reporter import Reporter
from crosskit.validation.validator import ValidationCheck

logger = logging.getLogger(__name__)


def select_components(
    config: CrossKitConfig, triple: TargetTriple, include_optional: bool
) -> List[ComponentSpec]:
    """Components from crosskit.yaml, or the target catalogue."""
    if config.install.components is not None:
        return [c for c in config.install.components if c.required or include_optional]
    return components_for_target(triple, include_optional=include_optional)


def make_provider(args, config: CrossKitConfig, profile: PlatformProfile) -> PackageProvider:
    """Package provider for the profile, with locks under the work directory."""
    work_dir = resolve_work_dir(args, config)
    return create_provider(
        profile,
        timeout=config.install.timeout,
        use_sudo=config.install.use_sudo,
        lock_manager=LockManager(work_dir / "lock" if work_dir else None),
    )


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 success, 2 detection, 3 install, 4 validation failure)
    """
    profile = None
    target = None
    try:
        config = load_settings(args)
        target = require_target(config)
        triple = TargetTriple.parse(target)
        profile = detect_platform(args.platform)
        logger.info(f"Platform: {profile}")
        descriptor = descriptor_from_config(config, profile)
        # A descriptor that cannot be rendered must fail before any install
        rendered = synthesize(descriptor)
    except (ConfigError, UnsupportedPlatformError, ConfigSynthesisError) as e:
        return report_fatal("install", e, args, profile=profile, target=target)

    components = select_components(config, triple, config.install.include_optional)
    orchestrator = InstallationOrchestrator(
        make_provider(args, config, profile),
        components,
        workers=config.install.workers,
    )
    orchestrator.install()

    if orchestrator.state is RunState.FAILED:
        report = Reporter.build(
            "install",
            outcomes=orchestrator.outcomes,
            platform_family=profile.family.value,
            target_triple=descriptor.target_triple,
        )
        return emit_report(report, args)

    output_dir = resolve_output_dir(args, config)
    written: List[Path] = []
    checks: List[ValidationCheck] = []
    error = None
    try:
        written = write_environment(descriptor, output_dir, rendered)
        if args.skip_validation:
            checks = orchestrator.validate(list)
        else:
            checks = orchestrator.validate(
                lambda: run_validation(args, config, descriptor)
            )
    except (OSError, FilesystemError) as e:
        logger.error(f"install failed after installing components: {e}")
        error = e
    except KeyboardInterrupt as e:
        logger.warning("Interrupted; installed components are kept")
        error = e

    report = Reporter.build(
        "install",
        outcomes=orchestrator.outcomes,
        checks=checks,
        platform_family=profile.family.value,
        target_triple=descriptor.target_triple,
        generated_files=written,
        error=error,
    )
    return emit_report(report, args)
