"""
Pytest configuration and shared fixtures for CrossKit tests.
"""

from pathlib import Path

import pytest

from crosskit.core.locking import LockManager
from crosskit.core.platform import clear_platform_cache
from crosskit.providers.base import ComponentSpec
from crosskit.toolchain.descriptor import CompilerPaths, ToolchainDescriptor
from tests.mocks import FakeProvider, ScriptedRunner


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that need a real cross compiler",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _fresh_platform_cache():
    """detect_platform is cached per process; isolate tests from each other."""
    clear_platform_cache()
    yield
    clear_platform_cache()


@pytest.fixture
def isolated_work_dir(tmp_path, monkeypatch) -> Path:
    """Point the default work directory (locks, run dirs) into tmp_path."""
    work_dir = tmp_path / "work"
    monkeypatch.setattr(
        "crosskit.core.filesystem.default_work_dir", lambda: work_dir
    )
    monkeypatch.setattr("crosskit.core.locking.default_work_dir", lambda: work_dir)
    return work_dir


@pytest.fixture
def lock_manager(tmp_path) -> LockManager:
    """Lock manager with its lock files under tmp_path."""
    return LockManager(lock_dir=tmp_path / "locks")


@pytest.fixture
def scripted_runner() -> ScriptedRunner:
    """Command runner that succeeds for everything unless scripted otherwise."""
    return ScriptedRunner()


@pytest.fixture
def fake_provider() -> FakeProvider:
    """In-memory provider with nothing installed."""
    return FakeProvider()


@pytest.fixture
def scenario_components():
    """compiler (required), binutils (required), docs (optional)."""
    return [
        ComponentSpec(name="compiler", canonical_package_name="gcc-aarch64-linux-gnu"),
        ComponentSpec(
            name="binutils", canonical_package_name="binutils-aarch64-linux-gnu"
        ),
        ComponentSpec(
            name="docs", canonical_package_name="gcc-doc", required=False
        ),
    ]


@pytest.fixture
def aarch64_descriptor() -> ToolchainDescriptor:
    """Descriptor for a Debian-packaged aarch64 cross toolchain."""
    return ToolchainDescriptor(
        target_triple="aarch64-unknown-linux-gnu",
        compilers=CompilerPaths(
            cc=Path("/usr/bin/aarch64-linux-gnu-gcc"),
            cxx=Path("/usr/bin/aarch64-linux-gnu-g++"),
            ar=Path("/usr/bin/aarch64-linux-gnu-ar"),
            ranlib=Path("/usr/bin/aarch64-linux-gnu-ranlib"),
            strip=Path("/usr/bin/aarch64-linux-gnu-strip"),
        ),
        sysroot=Path("/usr/aarch64-linux-gnu"),
        cpu_tuning="cortex-a72",
        extra_flags=("-O2",),
    )
