"""
Package provider adapters for CrossKit.

One adapter per platform family, all behind the PackageProvider interface.
"""

from crosskit.providers.base import (
    ComponentSpec,
    InstallStatus,
    OutcomePhase,
    InstallOutcome,
    PackageProvider,
    CommandPackageProvider,
)
from crosskit.providers.debian import AptProvider
from crosskit.providers.fedora import DnfProvider
from crosskit.providers.arch import PacmanProvider
from crosskit.providers.macos import BrewProvider
from crosskit.providers.registry import PROVIDERS, create_provider, get_provider_class

__all__ = [
    "ComponentSpec",
    "InstallStatus",
    "OutcomePhase",
    "InstallOutcome",
    "PackageProvider",
    "CommandPackageProvider",
    "AptProvider",
    "DnfProvider",
    "PacmanProvider",
    "BrewProvider",
    "PROVIDERS",
    "create_provider",
    "get_provider_class",
]
