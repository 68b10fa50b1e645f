"""
Fedora-family package provider (dnf / rpm).
"""

import logging
from typing import List

from crosskit.core.platform import PlatformFamily
from crosskit.providers.base import CommandPackageProvider

logger = logging.getLogger(__name__)


class DnfProvider(CommandPackageProvider):
    """Package provider backed by dnf, with rpm for installed-state queries."""

    provider_id = "dnf"
    family = PlatformFamily.FEDORA

    def _query_command(self, package: str) -> List[str]:
        return ["rpm", "-q", package]

    def _install_command(self, package: str) -> List[str]:
        return ["dnf", "install", "-y", package]

    def _uninstall_command(self, package: str) -> List[str]:
        return ["dnf", "remove", "-y", package]
