"""
Cross-compilation target catalogue for CrossKit.

This module provides target triple parsing, per-architecture facts and the
component sets installed for each target.
"""

from crosskit.cross.targets import TargetArchitecture, TargetTriple, get_architecture
from crosskit.cross.components import components_for_target, components_from_config

__all__ = [
    "TargetArchitecture",
    "TargetTriple",
    "get_architecture",
    "components_for_target",
    "components_from_config",
]
