"""
Debian-family package provider (apt / dpkg).

Installs cross toolchain packages with apt-get and queries their state with
dpkg-query. Used on Debian, Ubuntu and derivatives.
"""

import logging
from typing import List

from crosskit.core.platform import PlatformFamily
from crosskit.core.process import CommandResult
from crosskit.providers.base import CommandPackageProvider

logger = logging.getLogger(__name__)


class AptProvider(CommandPackageProvider):
    """
    Package provider backed by apt-get and dpkg-query.

    Example:
        >>> provider = AptProvider(timeout=900)
        >>> outcome = provider.install(component)
    """

    provider_id = "apt"
    family = PlatformFamily.DEBIAN

    def _query_command(self, package: str) -> List[str]:
        return ["dpkg-query", "-W", "-f=${Status}", package]

    def _query_succeeded(self, result: CommandResult) -> bool:
        # Removed-but-not-purged packages still answer with "deinstall ok config-files"
        return result.ok and "install ok installed" in result.stdout

    def _install_command(self, package: str) -> List[str]:
        return [
            "env",
            "DEBIAN_FRONTEND=noninteractive",
            "apt-get",
            "install",
            "-y",
            "--no-install-recommends",
            package,
        ]

    def _uninstall_command(self, package: str) -> List[str]:
        return ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get", "remove", "-y", package]
