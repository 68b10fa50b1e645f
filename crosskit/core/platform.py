"""
Host platform detection for CrossKit.

This module identifies the host's OS / distribution family so that exactly one
package provider adapter is selected for the run.

Detection is read-only: it checks for known package-manager executables and
OS identification files, then falls back to /etc/os-release.

Tie-break order
---------------
A host can carry more than one package manager (e.g. pacman installed on a
Debian box). Families are probed in FAMILY_PRIORITY order and the first match
wins:

    1. debian  (apt-get, /etc/debian_version)
    2. fedora  (dnf, /etc/fedora-release, /etc/redhat-release)
    3. arch    (pacman, /etc/arch-release)
    4. generic fallback: ID / ID_LIKE from /etc/os-release

The order follows the relative popularity of the supported distributions.
macOS is decided by the host kernel before any Linux probing.

Usage:
    from crosskit.core.platform import detect_platform

    profile = detect_platform()
    print(f"Family: {profile.family.value}, provider: {profile.package_provider_id}")
"""

import functools
import logging
import os
import platform
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

from crosskit.core.exceptions import UnsupportedPlatformError

logger = logging.getLogger(__name__)


class PlatformFamily(Enum):
    """Closed set of host platform families."""

    DEBIAN = "debian"
    FEDORA = "fedora"
    MACOS = "macos"
    ARCH = "arch"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_name(cls, name: str) -> "PlatformFamily":
        """Parse a family name, rejecting 'unsupported' and unknown names."""
        try:
            family = cls(name.lower())
        except ValueError:
            family = cls.UNSUPPORTED
        if family is cls.UNSUPPORTED:
            supported = ", ".join(f.value for f in SUPPORTED_FAMILIES)
            raise UnsupportedPlatformError(
                f"Unknown platform family '{name}'. Supported: {supported}"
            )
        return family


@dataclass(frozen=True)
class FamilyProbe:
    """What identifies one Linux family on a host."""

    family: PlatformFamily
    provider_id: str
    executables: Tuple[str, ...]
    release_files: Tuple[str, ...]
    os_release_ids: Tuple[str, ...]


# Explicit tie-break order for Linux hosts (see module docstring)
FAMILY_PRIORITY: Tuple[PlatformFamily, ...] = (
    PlatformFamily.DEBIAN,
    PlatformFamily.FEDORA,
    PlatformFamily.ARCH,
)

_LINUX_PROBES = {
    PlatformFamily.DEBIAN: FamilyProbe(
        family=PlatformFamily.DEBIAN,
        provider_id="apt",
        executables=("apt-get",),
        release_files=("/etc/debian_version",),
        os_release_ids=("debian", "ubuntu", "linuxmint", "pop", "raspbian"),
    ),
    PlatformFamily.FEDORA: FamilyProbe(
        family=PlatformFamily.FEDORA,
        provider_id="dnf",
        executables=("dnf",),
        release_files=("/etc/fedora-release", "/etc/redhat-release"),
        os_release_ids=("fedora", "rhel", "centos", "rocky", "almalinux"),
    ),
    PlatformFamily.ARCH: FamilyProbe(
        family=PlatformFamily.ARCH,
        provider_id="pacman",
        executables=("pacman",),
        release_files=("/etc/arch-release",),
        os_release_ids=("arch", "manjaro", "endeavouros"),
    ),
}

_PROVIDER_IDS = {
    PlatformFamily.DEBIAN: "apt",
    PlatformFamily.FEDORA: "dnf",
    PlatformFamily.ARCH: "pacman",
    PlatformFamily.MACOS: "brew",
}

# Where each family's package manager puts cross compilers
_PATH_HINTS = {
    PlatformFamily.DEBIAN: ("/usr/bin", "/usr/local/bin"),
    PlatformFamily.FEDORA: ("/usr/bin", "/usr/local/bin"),
    PlatformFamily.ARCH: ("/usr/bin", "/usr/local/bin"),
    PlatformFamily.MACOS: ("/opt/homebrew/bin", "/usr/local/bin"),
}

SUPPORTED_FAMILIES: Tuple[PlatformFamily, ...] = (
    PlatformFamily.DEBIAN,
    PlatformFamily.FEDORA,
    PlatformFamily.MACOS,
    PlatformFamily.ARCH,
)


@dataclass(frozen=True)
class PlatformProfile:
    """
    Detected host platform. Immutable once detected for a run.

    Attributes:
        family: Platform family
        package_provider_id: Identifier of the package manager adapter
        path_hints: Directories where installed compilers are expected
    """

    family: PlatformFamily
    package_provider_id: str
    path_hints: Tuple[Path, ...] = ()

    @classmethod
    def for_family(cls, family: PlatformFamily) -> "PlatformProfile":
        """Build the canonical profile for a supported family."""
        if family not in _PROVIDER_IDS:
            raise UnsupportedPlatformError(f"No package provider for {family.value}")
        return cls(
            family=family,
            package_provider_id=_PROVIDER_IDS[family],
            path_hints=tuple(Path(p) for p in _PATH_HINTS[family]),
        )

    def to_dict(self) -> dict:
        return {
            "family": self.family.value,
            "package_provider": self.package_provider_id,
            "path_hints": [str(p) for p in self.path_hints],
        }

    def __str__(self) -> str:
        return f"{self.family.value} ({self.package_provider_id})"


def _os_release_ids() -> Sequence[str]:
    """ID followed by ID_LIKE entries from /etc/os-release."""
    import distro

    ids = [distro.id()]
    ids.extend(distro.like().split())
    return [i for i in ids if i]


class PlatformDetector:
    """
    Detects the host platform family.

    All host access goes through injectable callables so detection can be
    exercised deterministically in tests.
    """

    def __init__(
        self,
        which: Callable[[str], Optional[str]] = shutil.which,
        path_exists: Callable[[str], bool] = os.path.exists,
        system: Callable[[], str] = platform.system,
        os_release_ids: Callable[[], Sequence[str]] = _os_release_ids,
    ):
        self._which = which
        self._path_exists = path_exists
        self._system = system
        self._os_release_ids = os_release_ids

    def detect(self) -> PlatformProfile:
        """
        Detect the host platform.

        Returns:
            PlatformProfile for the first matching family

        Raises:
            UnsupportedPlatformError: If no supported family is recognized
        """
        system = self._system().lower()
        logger.debug(f"Host kernel: {system}")

        if system == "darwin":
            if self._which("brew"):
                return PlatformProfile.for_family(PlatformFamily.MACOS)
            raise UnsupportedPlatformError(
                "macOS host detected but Homebrew ('brew') is not installed",
                probed=["brew"],
            )

        if system != "linux":
            raise UnsupportedPlatformError(f"Unsupported host operating system: {system}")

        probed = []
        for family in FAMILY_PRIORITY:
            probe = _LINUX_PROBES[family]
            probed.extend(probe.executables + probe.release_files)
            if self._matches(probe):
                logger.debug(f"Detected {family.value} family ({probe.provider_id})")
                return PlatformProfile.for_family(family)

        # Generic fallback
        ids = list(self._os_release_ids())
        logger.debug(f"Falling back to os-release identifiers: {ids}")
        for family in FAMILY_PRIORITY:
            if any(i in _LINUX_PROBES[family].os_release_ids for i in ids):
                return PlatformProfile.for_family(family)

        raise UnsupportedPlatformError(
            "No supported package manager found "
            f"(probed: {', '.join(probed)}; os-release: {', '.join(ids) or 'none'})",
            probed=probed,
        )

    def _matches(self, probe: FamilyProbe) -> bool:
        if any(self._which(exe) for exe in probe.executables):
            return True
        return any(self._path_exists(path) for path in probe.release_files)


@functools.lru_cache(maxsize=8)
def detect_platform(override: Optional[str] = None) -> PlatformProfile:
    """
    Detect the host platform, or build the profile for an explicit override.

    This function is cached - detection runs once per process.

    Args:
        override: Family name that skips probing (e.g., 'arch')

    Returns:
        PlatformProfile

    Raises:
        UnsupportedPlatformError: If detection fails or override is unknown
    """
    if override:
        family = PlatformFamily.from_name(override)
        logger.info(f"Platform overridden: {family.value}")
        return PlatformProfile.for_family(family)

    return PlatformDetector().detect()


def clear_platform_cache():
    """Clear the platform detection cache."""
    detect_platform.cache_clear()


__all__ = [
    "PlatformFamily",
    "PlatformProfile",
    "PlatformDetector",
    "FAMILY_PRIORITY",
    "SUPPORTED_FAMILIES",
    "detect_platform",
    "clear_platform_cache",
]
