"""
Core functionality for CrossKit.

This package contains the foundational modules that other components depend on.
"""

from .exceptions import (
    CrossKitError,
    UnsupportedPlatformError,
    ProviderError,
    ProviderTimeoutError,
    CompileProbeError,
    BinaryInspectionError,
    ConfigSynthesisError,
    ConfigError,
    InvalidStateTransition,
    RunCancelledError,
    CommandTimeoutError,
)

from .filesystem import (
    atomic_write,
    write_if_changed,
    safe_rmtree,
    run_directory,
)

from .locking import (
    LockManager,
    LockTimeout,
)

from .platform import (
    PlatformFamily,
    PlatformProfile,
    PlatformDetector,
    detect_platform,
    clear_platform_cache,
)

from .process import CommandResult, run_command

__all__ = [
    # Exceptions
    "CrossKitError",
    "UnsupportedPlatformError",
    "ProviderError",
    "ProviderTimeoutError",
    "CompileProbeError",
    "BinaryInspectionError",
    "ConfigSynthesisError",
    "ConfigError",
    "InvalidStateTransition",
    "RunCancelledError",
    "CommandTimeoutError",
    # Filesystem
    "atomic_write",
    "write_if_changed",
    "safe_rmtree",
    "run_directory",
    # Locking
    "LockManager",
    "LockTimeout",
    # Platform
    "PlatformFamily",
    "PlatformProfile",
    "PlatformDetector",
    "detect_platform",
    "clear_platform_cache",
    # Processes
    "CommandResult",
    "run_command",
]
