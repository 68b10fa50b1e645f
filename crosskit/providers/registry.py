"""
Registry of package provider adapters.

The set of adapters is closed: exactly one per supported platform family.
Selection happens once, from the PlatformProfile; nothing downstream branches
on the family again.
"""

import logging
from typing import Dict, Type

from crosskit.core.exceptions import UnsupportedPlatformError
from crosskit.core.platform import PlatformFamily, PlatformProfile
from crosskit.providers.arch import PacmanProvider
from crosskit.providers.base import CommandPackageProvider
from crosskit.providers.debian import AptProvider
from crosskit.providers.fedora import DnfProvider
from crosskit.providers.macos import BrewProvider

logger = logging.getLogger(__name__)


PROVIDERS: Dict[PlatformFamily, Type[CommandPackageProvider]] = {
    PlatformFamily.DEBIAN: AptProvider,
    PlatformFamily.FEDORA: DnfProvider,
    PlatformFamily.ARCH: PacmanProvider,
    PlatformFamily.MACOS: BrewProvider,
}


def get_provider_class(family: PlatformFamily) -> Type[CommandPackageProvider]:
    """
    Look up the adapter class for a family.

    Raises:
        UnsupportedPlatformError: If the family has no adapter
    """
    try:
        return PROVIDERS[family]
    except KeyError:
        raise UnsupportedPlatformError(
            f"No package provider for platform family '{family.value}'"
        ) from None


def create_provider(profile: PlatformProfile, **kwargs) -> CommandPackageProvider:
    """
    Instantiate the adapter selected by a platform profile.

    Args:
        profile: Detected platform profile
        **kwargs: Forwarded to the provider (runner, timeout, use_sudo, ...)

    Returns:
        Provider instance
    """
    provider_cls = get_provider_class(profile.family)
    logger.debug(f"Selected package provider: {provider_cls.__name__}")
    return provider_cls(**kwargs)
