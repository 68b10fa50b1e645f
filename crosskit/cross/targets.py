"""
Cross-compilation target catalogue.

This module parses target triples and maps each supported CPU architecture to
the facts every other component needs: the architecture marker found in a
compiled binary's header, the CMake processor name, the Meson cpu family and
the Debian multiarch name used in package names.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from crosskit.core.exceptions import ConfigError


@dataclass(frozen=True)
class TargetArchitecture:
    """
    Facts about one target CPU architecture.

    Attributes:
        name: Canonical architecture component of the triple (e.g., 'aarch64')
        binary_marker: Machine name as reported by readelf (e.g., 'AArch64')
        cmake_processor: Value for CMAKE_SYSTEM_PROCESSOR
        meson_cpu_family: Meson cpu_family
        endian: 'little' or 'big'
        debian_arch: Debian multiarch name used in cross package names
        default_abi: ABI component used when the triple omits one
    """

    name: str
    binary_marker: str
    cmake_processor: str
    meson_cpu_family: str
    endian: str
    debian_arch: str
    default_abi: str = "gnu"


ARCHITECTURES: Dict[str, TargetArchitecture] = {
    "aarch64": TargetArchitecture(
        name="aarch64",
        binary_marker="AArch64",
        cmake_processor="aarch64",
        meson_cpu_family="aarch64",
        endian="little",
        debian_arch="arm64",
    ),
    "arm": TargetArchitecture(
        name="arm",
        binary_marker="ARM",
        cmake_processor="arm",
        meson_cpu_family="arm",
        endian="little",
        debian_arch="armhf",
        default_abi="gnueabihf",
    ),
    "x86_64": TargetArchitecture(
        name="x86_64",
        binary_marker="Advanced Micro Devices X86-64",
        cmake_processor="x86_64",
        meson_cpu_family="x86_64",
        endian="little",
        debian_arch="amd64",
    ),
    "i686": TargetArchitecture(
        name="i686",
        binary_marker="Intel 80386",
        cmake_processor="i686",
        meson_cpu_family="x86",
        endian="little",
        debian_arch="i386",
    ),
    "riscv64": TargetArchitecture(
        name="riscv64",
        binary_marker="RISC-V",
        cmake_processor="riscv64",
        meson_cpu_family="riscv64",
        endian="little",
        debian_arch="riscv64",
    ),
    "powerpc64le": TargetArchitecture(
        name="powerpc64le",
        binary_marker="PowerPC64",
        cmake_processor="ppc64le",
        meson_cpu_family="ppc64",
        endian="little",
        debian_arch="ppc64el",
    ),
    "s390x": TargetArchitecture(
        name="s390x",
        binary_marker="IBM S/390",
        cmake_processor="s390x",
        meson_cpu_family="s390x",
        endian="big",
        debian_arch="s390x",
    ),
}

# Spellings accepted in the architecture field of a triple
_ARCH_ALIASES = {
    "arm64": "aarch64",
    "armv7": "arm",
    "armv7l": "arm",
    "armv7a": "arm",
    "armhf": "arm",
    "amd64": "x86_64",
    "x64": "x86_64",
    "i386": "i686",
    "i586": "i686",
    "x86": "i686",
    "ppc64le": "powerpc64le",
}

# Vendor fields that GNU tool prefixes leave out
_GENERIC_VENDORS = ("unknown", "pc", "none")

_CMAKE_SYSTEM_NAMES = {
    "linux": "Linux",
    "darwin": "Darwin",
    "windows": "Windows",
    "freebsd": "FreeBSD",
    "none": "Generic",
}


@dataclass(frozen=True)
class TargetTriple:
    """
    Parsed target triple.

    Accepts both the four-part form ('aarch64-unknown-linux-gnu') and the
    three-part GNU form ('aarch64-linux-gnu').

    Example:
        >>> triple = TargetTriple.parse("aarch64-unknown-linux-gnu")
        >>> triple.gnu_prefix
        'aarch64-linux-gnu'
        >>> triple.architecture.binary_marker
        'AArch64'
    """

    arch: str
    vendor: Optional[str]
    os: str
    abi: Optional[str]
    original: str

    @classmethod
    def parse(cls, text: str) -> "TargetTriple":
        """
        Parse a target triple string.

        Raises:
            ConfigError: If the triple is malformed or its architecture unsupported
        """
        if not text or not text.strip():
            raise ConfigError("Target triple must not be empty")

        parts = text.strip().lower().split("-")
        if len(parts) < 2 or len(parts) > 4 or not all(parts):
            raise ConfigError(f"Malformed target triple: '{text}'")

        arch = _ARCH_ALIASES.get(parts[0], parts[0])
        if arch not in ARCHITECTURES:
            raise ConfigError(
                f"Unsupported target architecture '{parts[0]}' in '{text}'. "
                f"Supported: {', '.join(sorted(ARCHITECTURES))}"
            )

        vendor: Optional[str] = None
        abi: Optional[str] = None
        if len(parts) == 4:
            vendor, os_name, abi = parts[1], parts[2], parts[3]
        elif len(parts) == 3:
            if parts[1] in _CMAKE_SYSTEM_NAMES:
                os_name, abi = parts[1], parts[2]
            else:
                vendor, os_name = parts[1], parts[2]
        else:
            os_name = parts[1]

        return cls(arch=arch, vendor=vendor, os=os_name, abi=abi, original=text.strip())

    @property
    def architecture(self) -> TargetArchitecture:
        return ARCHITECTURES[self.arch]

    @property
    def gnu_prefix(self) -> str:
        """Prefix of the GNU cross tools, e.g. 'arm-linux-gnueabihf'."""
        parts = [self.arch]
        if self.vendor and self.vendor not in _GENERIC_VENDORS:
            parts.append(self.vendor)
        parts.append(self.os)
        abi = self.abi
        if abi is None and self.os == "linux":
            abi = self.architecture.default_abi
        if abi:
            parts.append(abi)
        return "-".join(parts)

    @property
    def cmake_system_name(self) -> str:
        return _CMAKE_SYSTEM_NAMES.get(self.os, self.os.capitalize())

    def __str__(self) -> str:
        return self.original


def get_architecture(name: str) -> TargetArchitecture:
    """Look up an architecture by canonical name or alias."""
    canonical = _ARCH_ALIASES.get(name.lower(), name.lower())
    if canonical not in ARCHITECTURES:
        raise ConfigError(f"Unsupported architecture: {name}")
    return ARCHITECTURES[canonical]


__all__ = ["TargetArchitecture", "TargetTriple", "ARCHITECTURES", "get_architecture"]
