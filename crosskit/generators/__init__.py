"""
Build-system file generation for CrossKit.

Renders CMake, Autotools, pkg-config and Meson files plus a shell environment
script from a ToolchainDescriptor.
"""

from crosskit.generators.synthesizer import (
    AUTOTOOLS_SITE_FILENAME,
    CMAKE_FILENAME,
    ENV_SCRIPT_FILENAME,
    MESON_CROSS_FILENAME,
    ConfigSynthesizer,
    SynthesizedConfig,
    generated_filenames,
    pkg_config_filename,
    synthesize,
    write_configs,
)

__all__ = [
    "ConfigSynthesizer",
    "SynthesizedConfig",
    "synthesize",
    "write_configs",
    "generated_filenames",
    "pkg_config_filename",
    "CMAKE_FILENAME",
    "AUTOTOOLS_SITE_FILENAME",
    "MESON_CROSS_FILENAME",
    "ENV_SCRIPT_FILENAME",
]
