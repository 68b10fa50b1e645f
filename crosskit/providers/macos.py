"""
macOS package provider (Homebrew).

Homebrew refuses to run as root, so this provider never adds sudo.
"""

import logging
from typing import List

from crosskit.core.platform import PlatformFamily
from crosskit.core.process import CommandResult
from crosskit.providers.base import CommandPackageProvider

logger = logging.getLogger(__name__)


class BrewProvider(CommandPackageProvider):
    """Package provider backed by Homebrew."""

    provider_id = "brew"
    family = PlatformFamily.MACOS
    requires_root = False

    def _query_command(self, package: str) -> List[str]:
        return ["brew", "list", "--versions", package]

    def _query_succeeded(self, result: CommandResult) -> bool:
        return result.ok and bool(result.stdout.strip())

    def _install_command(self, package: str) -> List[str]:
        return ["brew", "install", package]

    def _uninstall_command(self, package: str) -> List[str]:
        return ["brew", "uninstall", package]
