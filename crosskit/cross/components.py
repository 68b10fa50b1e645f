"""
Component sets for cross toolchains.

The set of installable components is static for a given target triple: a C
compiler, a C++ compiler, binutils and the target C library headers are
required; a debugger is optional. Package names differ per platform family,
so each ComponentSpec carries per-family overrides.

Fedora packages cross compilers for kernel builds only and ships no target C
library; on that family the libc-headers component has no package and a
sysroot must be supplied through configuration instead.
"""

import logging
from typing import List

from crosskit.core.platform import PlatformFamily
from crosskit.cross.targets import TargetTriple
from crosskit.providers.base import ComponentSpec

logger = logging.getLogger(__name__)


def _brew_formula(triple: TargetTriple) -> str:
    # One tap formula carries gcc, g++, binutils and a glibc sysroot
    vendor = triple.vendor or "unknown"
    abi = triple.abi or triple.architecture.default_abi
    return f"messense/macos-cross-toolchains/{triple.arch}-{vendor}-{triple.os}-{abi}"


def components_for_target(
    triple: TargetTriple, include_optional: bool = True
) -> List[ComponentSpec]:
    """
    Build the component list for a target, in installation order.

    Args:
        triple: Parsed target triple
        include_optional: Whether to include optional components

    Returns:
        Ordered list of ComponentSpec

    Example:
        >>> specs = components_for_target(TargetTriple.parse("aarch64-linux-gnu"))
        >>> [s.name for s in specs]
        ['c-compiler', 'c++-compiler', 'binutils', 'libc-headers', 'debugger']
    """
    prefix = triple.gnu_prefix
    debian_arch = triple.architecture.debian_arch
    formula = _brew_formula(triple)

    components = [
        ComponentSpec(
            name="c-compiler",
            canonical_package_name=f"gcc-{prefix}",
            package_name_overrides={
                PlatformFamily.ARCH: f"{prefix}-gcc",
                PlatformFamily.MACOS: formula,
            },
        ),
        ComponentSpec(
            name="c++-compiler",
            canonical_package_name=f"g++-{prefix}",
            package_name_overrides={
                PlatformFamily.FEDORA: f"gcc-c++-{prefix}",
                PlatformFamily.ARCH: f"{prefix}-gcc",
                PlatformFamily.MACOS: formula,
            },
        ),
        ComponentSpec(
            name="binutils",
            canonical_package_name=f"binutils-{prefix}",
            package_name_overrides={
                PlatformFamily.ARCH: f"{prefix}-binutils",
                PlatformFamily.MACOS: formula,
            },
        ),
        ComponentSpec(
            name="libc-headers",
            canonical_package_name=f"libc6-dev-{debian_arch}-cross",
            package_name_overrides={
                PlatformFamily.FEDORA: None,
                PlatformFamily.ARCH: f"{prefix}-glibc",
                PlatformFamily.MACOS: formula,
            },
        ),
    ]

    if include_optional:
        components.append(
            ComponentSpec(
                name="debugger",
                canonical_package_name="gdb-multiarch",
                package_name_overrides={
                    PlatformFamily.FEDORA: "gdb",
                    PlatformFamily.ARCH: f"{prefix}-gdb",
                    PlatformFamily.MACOS: None,
                },
                required=False,
            )
        )

    logger.debug(f"{len(components)} components for {triple}")
    return components


def components_from_config(entries: List[dict]) -> List[ComponentSpec]:
    """
    Build ComponentSpecs from the install.components configuration list.

    Each entry has 'name', 'package', optional 'overrides' (family name to
    package name, or null) and optional 'required' (default true).
    """
    components = []
    for entry in entries:
        overrides = {
            PlatformFamily.from_name(family): package
            for family, package in (entry.get("overrides") or {}).items()
        }
        components.append(
            ComponentSpec(
                name=entry["name"],
                canonical_package_name=entry["package"],
                package_name_overrides=overrides,
                required=bool(entry.get("required", True)),
            )
        )
    return components


__all__ = ["components_for_target", "components_from_config"]
