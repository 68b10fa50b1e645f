"""
Unit tests for cross toolchain component sets.

Tests cover:
- Component order and required/optional split
- Package names per platform family
- Components declared in configuration
"""

import pytest

from crosskit.core.exceptions import UnsupportedPlatformError
from crosskit.core.platform import PlatformFamily
from crosskit.cross.components import components_for_target, components_from_config
from crosskit.cross.targets import TargetTriple


@pytest.fixture
def aarch64():
    return TargetTriple.parse("aarch64-unknown-linux-gnu")


def packages(components, family):
    return {c.name: c.package_name_for(family) for c in components}


class TestComponentsForTarget:
    """Tests for components_for_target."""

    def test_order_and_requirement(self, aarch64):
        """Test installation order and which components are optional."""
        components = components_for_target(aarch64)

        assert [c.name for c in components] == [
            "c-compiler",
            "c++-compiler",
            "binutils",
            "libc-headers",
            "debugger",
        ]
        assert [c.required for c in components] == [True, True, True, True, False]

    def test_exclude_optional(self, aarch64):
        components = components_for_target(aarch64, include_optional=False)
        assert "debugger" not in [c.name for c in components]
        assert all(c.required for c in components)

    def test_debian_packages(self, aarch64):
        """Test Debian cross package names."""
        assert packages(components_for_target(aarch64), PlatformFamily.DEBIAN) == {
            "c-compiler": "gcc-aarch64-linux-gnu",
            "c++-compiler": "g++-aarch64-linux-gnu",
            "binutils": "binutils-aarch64-linux-gnu",
            "libc-headers": "libc6-dev-arm64-cross",
            "debugger": "gdb-multiarch",
        }

    def test_arch_packages(self, aarch64):
        """Test Arch Linux cross package names."""
        names = packages(components_for_target(aarch64), PlatformFamily.ARCH)
        assert names["c-compiler"] == "aarch64-linux-gnu-gcc"
        assert names["binutils"] == "aarch64-linux-gnu-binutils"
        assert names["libc-headers"] == "aarch64-linux-gnu-glibc"

    def test_fedora_has_no_libc_package(self, aarch64):
        """Test that Fedora ships no target C library package."""
        names = packages(components_for_target(aarch64), PlatformFamily.FEDORA)
        assert names["c++-compiler"] == "gcc-c++-aarch64-linux-gnu"
        assert names["libc-headers"] is None

    def test_macos_uses_one_formula(self, aarch64):
        """Test that Homebrew installs the toolchain from a single tap formula."""
        names = packages(components_for_target(aarch64), PlatformFamily.MACOS)
        formula = "messense/macos-cross-toolchains/aarch64-unknown-linux-gnu"
        assert names["c-compiler"] == formula
        assert names["binutils"] == formula
        assert names["debugger"] is None

    def test_armhf_debian_arch(self):
        """Test that the Debian multiarch name differs from the triple arch."""
        triple = TargetTriple.parse("arm-linux-gnueabihf")
        names = packages(components_for_target(triple), PlatformFamily.DEBIAN)
        assert names["c-compiler"] == "gcc-arm-linux-gnueabihf"
        assert names["libc-headers"] == "libc6-dev-armhf-cross"


class TestComponentsFromConfig:
    """Tests for components_from_config."""

    def test_basic_entries(self):
        components = components_from_config(
            [
                {"name": "compiler", "package": "gcc-aarch64-linux-gnu"},
                {"name": "docs", "package": "gcc-doc", "required": False},
            ]
        )

        assert [c.name for c in components] == ["compiler", "docs"]
        assert components[0].required is True
        assert components[1].required is False

    def test_overrides(self):
        """Test per-family overrides, including null for unpackaged."""
        (component,) = components_from_config(
            [
                {
                    "name": "libc",
                    "package": "libc6-dev-arm64-cross",
                    "overrides": {"arch": "aarch64-linux-gnu-glibc", "fedora": None},
                }
            ]
        )

        assert component.package_name_for(PlatformFamily.DEBIAN) == "libc6-dev-arm64-cross"
        assert component.package_name_for(PlatformFamily.ARCH) == "aarch64-linux-gnu-glibc"
        assert component.package_name_for(PlatformFamily.FEDORA) is None

    def test_unknown_family_override(self):
        with pytest.raises(UnsupportedPlatformError):
            components_from_config(
                [{"name": "x", "package": "x", "overrides": {"gentoo": "x"}}]
            )
