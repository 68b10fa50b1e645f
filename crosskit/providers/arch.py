"""
Arch-family package provider (pacman).
"""

import logging
from typing import List

from crosskit.core.platform import PlatformFamily
from crosskit.providers.base import CommandPackageProvider

logger = logging.getLogger(__name__)


class PacmanProvider(CommandPackageProvider):
    """Package provider backed by pacman."""

    provider_id = "pacman"
    family = PlatformFamily.ARCH

    def _query_command(self, package: str) -> List[str]:
        return ["pacman", "-Q", package]

    def _install_command(self, package: str) -> List[str]:
        return ["pacman", "-S", "--noconfirm", "--needed", package]

    def _uninstall_command(self, package: str) -> List[str]:
        # -R without -s: dependencies pulled in by the package are left alone
        return ["pacman", "-R", "--noconfirm", package]
