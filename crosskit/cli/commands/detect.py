"""
Detect command implementation.

Prints the host platform profile CrossKit would use.
"""

import json
import logging

from crosskit.cli.utils import (
    EXIT_DETECTION_FAILED,
    EXIT_SUCCESS,
    print_error,
    safe_print,
)
from crosskit.core.exceptions import UnsupportedPlatformError
from crosskit.core.platform import detect_platform

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the detect command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 2 if the host is unsupported)
    """
    try:
        profile = detect_platform(args.platform)
    except UnsupportedPlatformError as e:
        print_error(str(e))
        return EXIT_DETECTION_FAILED

    if args.format == "json":
        safe_print(json.dumps(profile.to_dict(), indent=2))
    else:
        safe_print(f"Platform family:  {profile.family.value}")
        safe_print(f"Package provider: {profile.package_provider_id}")
        safe_print(f"Compiler paths:   {', '.join(str(p) for p in profile.path_hints)}")

    return EXIT_SUCCESS
