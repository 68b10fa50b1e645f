"""
Canonical toolchain descriptor.

ToolchainDescriptor is the single source of truth for the cross environment:
every generated build-system file and the environment script are pure
projections of it. It is immutable and passed by value; nothing reads
compiler settings from the ambient process environment.

The descriptor is persisted as JSON next to the generated files so that a
later `crosskit validate` run uses exactly what `install` produced.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

from crosskit.core.exceptions import ConfigError
from crosskit.core.filesystem import atomic_write
from crosskit.core.platform import PlatformFamily, PlatformProfile
from crosskit.cross.targets import TargetTriple

logger = logging.getLogger(__name__)

DESCRIPTOR_VERSION = 1
DESCRIPTOR_FILENAME = "toolchain.json"

TOOL_NAMES = ("cc", "cxx", "ar", "ranlib", "strip")

# GNU tool name suffixes for each compiler path slot
_TOOL_SUFFIXES = {
    "cc": "gcc",
    "cxx": "g++",
    "ar": "ar",
    "ranlib": "ranlib",
    "strip": "strip",
}


@dataclass(frozen=True)
class CompilerPaths:
    """Absolute paths of the cross tools."""

    cc: Path
    cxx: Optional[Path] = None
    ar: Optional[Path] = None
    ranlib: Optional[Path] = None
    strip: Optional[Path] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {name: _path_str(getattr(self, name)) for name in TOOL_NAMES}


@dataclass(frozen=True)
class ToolchainDescriptor:
    """
    Canonical, immutable cross toolchain configuration.

    Attributes:
        target_triple: Target triple (e.g., 'aarch64-unknown-linux-gnu')
        sysroot: Target system root, or None to use the compiler default
        compilers: Paths of cc, cxx, ar, ranlib and strip
        cpu_tuning: Optional -mcpu value (e.g., 'cortex-a72')
        extra_flags: Additional compiler flags, in order
    """

    target_triple: str
    compilers: CompilerPaths
    sysroot: Optional[Path] = None
    cpu_tuning: Optional[str] = None
    extra_flags: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def triple(self) -> TargetTriple:
        return TargetTriple.parse(self.target_triple)

    def compile_flags(self) -> Tuple[str, ...]:
        """Flags every compiler invocation for this target needs."""
        flags = []
        if self.sysroot:
            flags.append(f"--sysroot={self.sysroot}")
        if self.cpu_tuning:
            flags.append(f"-mcpu={self.cpu_tuning}")
        flags.extend(self.extra_flags)
        return tuple(flags)

    def to_dict(self) -> dict:
        return {
            "version": DESCRIPTOR_VERSION,
            "target_triple": self.target_triple,
            "sysroot": _path_str(self.sysroot),
            "compilers": self.compilers.as_dict(),
            "cpu_tuning": self.cpu_tuning,
            "extra_flags": list(self.extra_flags),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ToolchainDescriptor":
        """
        Rebuild a descriptor from its dict form.

        Raises:
            ConfigError: If required fields are missing or malformed
        """
        if data.get("version", DESCRIPTOR_VERSION) != DESCRIPTOR_VERSION:
            raise ConfigError(f"Unsupported descriptor version: {data.get('version')}")

        try:
            compilers = data["compilers"]
            target = data["target_triple"]
            cc = compilers["cc"]
        except (KeyError, TypeError) as e:
            raise ConfigError(f"Descriptor missing required field: {e}") from e

        if not cc:
            raise ConfigError("Descriptor has no C compiler path")

        return cls(
            target_triple=target,
            compilers=CompilerPaths(
                cc=Path(cc),
                **{
                    name: Path(compilers[name]) if compilers.get(name) else None
                    for name in TOOL_NAMES[1:]
                },
            ),
            sysroot=Path(data["sysroot"]) if data.get("sysroot") else None,
            cpu_tuning=data.get("cpu_tuning") or None,
            extra_flags=tuple(data.get("extra_flags") or ()),
        )


def _path_str(path: Optional[Path]) -> Optional[str]:
    return path.as_posix() if path is not None else None


def default_sysroot(triple: TargetTriple, family: PlatformFamily) -> Optional[Path]:
    """Sysroot the family's cross packages install into."""
    prefix = triple.gnu_prefix
    if family in (PlatformFamily.DEBIAN, PlatformFamily.ARCH):
        return Path("/usr") / prefix
    if family is PlatformFamily.FEDORA:
        return Path("/usr") / prefix / "sys-root"
    return None


def default_compilers(triple: TargetTriple, profile: PlatformProfile) -> CompilerPaths:
    """
    Expected tool paths for a target under the profile's path hints.

    The first hint directory that already holds the C compiler wins; with no
    match the first hint is used, so the result never depends on PATH order.
    """
    prefix = triple.gnu_prefix
    hints = profile.path_hints or (Path("/usr/bin"),)
    bin_dir = hints[0]
    for hint in hints:
        if (hint / f"{prefix}-gcc").exists():
            bin_dir = hint
            break

    return CompilerPaths(
        **{name: bin_dir / f"{prefix}-{suffix}" for name, suffix in _TOOL_SUFFIXES.items()}
    )


def build_descriptor(
    target: str,
    profile: PlatformProfile,
    sysroot: Optional[Path] = None,
    compilers: Optional[Dict[str, str]] = None,
    cpu_tuning: Optional[str] = None,
    extra_flags: Sequence[str] = (),
) -> ToolchainDescriptor:
    """
    Build a descriptor from catalogue defaults plus explicit overrides.

    Args:
        target: Target triple
        profile: Host platform profile (for default paths)
        sysroot: Explicit sysroot (default: family convention)
        compilers: Explicit tool paths keyed by cc/cxx/ar/ranlib/strip
        cpu_tuning: Optional CPU tuning
        extra_flags: Extra compiler flags

    Returns:
        ToolchainDescriptor

    Raises:
        ConfigError: If the target is invalid, an unknown tool is given, or a
            tool or sysroot path is relative
    """
    triple = TargetTriple.parse(target)
    paths = default_compilers(triple, profile)

    if compilers:
        unknown = set(compilers) - set(TOOL_NAMES)
        if unknown:
            raise ConfigError(f"Unknown compiler keys: {', '.join(sorted(unknown))}")
        paths = replace(
            paths,
            **{
                name: _absolute(value, f"compilers.{name}")
                for name, value in compilers.items()
                if value
            },
        )

    if sysroot is not None:
        sysroot = _absolute(sysroot, "sysroot")

    return ToolchainDescriptor(
        target_triple=triple.original,
        compilers=paths,
        sysroot=sysroot if sysroot is not None else default_sysroot(triple, profile.family),
        cpu_tuning=cpu_tuning,
        extra_flags=tuple(extra_flags),
    )


def _absolute(value, field_name: str) -> Path:
    path = Path(value)
    if not path.is_absolute():
        raise ConfigError(f"{field_name} must be an absolute path, got '{value}'")
    return path


def save_descriptor(descriptor: ToolchainDescriptor, path: Path) -> Path:
    """Persist a descriptor as JSON (atomic write)."""
    content = json.dumps(descriptor.to_dict(), indent=2, sort_keys=True) + "\n"
    atomic_write(path, content)
    logger.debug(f"Saved toolchain descriptor: {path}")
    return path


def load_descriptor(path: Path) -> ToolchainDescriptor:
    """
    Load a persisted descriptor.

    Raises:
        ConfigError: If the file is missing or invalid
    """
    if not path.exists():
        raise ConfigError(f"Toolchain descriptor not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid toolchain descriptor {path}: {e}") from e

    return ToolchainDescriptor.from_dict(data)


__all__ = [
    "CompilerPaths",
    "ToolchainDescriptor",
    "DESCRIPTOR_FILENAME",
    "TOOL_NAMES",
    "default_sysroot",
    "default_compilers",
    "build_descriptor",
    "save_descriptor",
    "load_descriptor",
]
