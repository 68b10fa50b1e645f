"""
Generate command implementation.

Writes build-system files for the configured toolchain without installing
anything.
"""

import logging
from pathlib import Path
from typing import List, Optional

from crosskit.cli.utils import (
    descriptor_from_config,
    emit_report,
    load_settings,
    report_fatal,
    resolve_output_dir,
)
from crosskit.core.exceptions import (
    ConfigError,
    ConfigSynthesisError,
    UnsupportedPlatformError,
)
from crosskit.core.platform import detect_platform
from crosskit.generators.synthesizer import SynthesizedConfig, synthesize, write_configs
from crosskit.report.reporter import Reporter
from crosskit.toolchain.descriptor import (
    DESCRIPTOR_FILENAME,
    ToolchainDescriptor,
    save_descriptor,
)

logger = logging.getLogger(__name__)


def write_environment(
    descriptor: ToolchainDescriptor,
    output_dir: Path,
    result: Optional[SynthesizedConfig] = None,
) -> List[Path]:
    """
    Write every generated file plus the persisted descriptor.

    Args:
        descriptor: Toolchain descriptor
        output_dir: Destination directory
        result: Files already rendered from descriptor (rendered here if None)

    Returns:
        Paths of the files in output_dir, changed or not

    Raises:
        ConfigSynthesisError: If the descriptor cannot be rendered
        OSError: If output_dir cannot be written
    """
    if result is None:
        result = synthesize(descriptor)
    written = list(write_configs(result, output_dir))
    written.append(save_descriptor(descriptor, output_dir / DESCRIPTOR_FILENAME))
    return written


def run(args) -> int:
    """
    Run the generate command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    profile = None
    target = None
    try:
        config = load_settings(args)
        target = config.target
        profile = detect_platform(args.platform)
        descriptor = descriptor_from_config(config, profile)
        output_dir = resolve_output_dir(args, config)
        logger.info(f"Generating files for {descriptor.target_triple} in {output_dir}")
        written = write_environment(descriptor, output_dir)
    except (ConfigError, UnsupportedPlatformError, ConfigSynthesisError, OSError) as e:
        return report_fatal("generate", e, args, profile=profile, target=target)

    report = Reporter.build(
        "generate",
        platform_family=profile.family.value,
        target_triple=descriptor.target_triple,
        generated_files=written,
    )
    return emit_report(report, args)
