"""Toolchain descriptor: the single source of truth for generated files."""

from crosskit.toolchain.descriptor import (
    DESCRIPTOR_FILENAME,
    TOOL_NAMES,
    CompilerPaths,
    ToolchainDescriptor,
    build_descriptor,
    default_compilers,
    default_sysroot,
    load_descriptor,
    save_descriptor,
)

__all__ = [
    "DESCRIPTOR_FILENAME",
    "TOOL_NAMES",
    "CompilerPaths",
    "ToolchainDescriptor",
    "build_descriptor",
    "default_compilers",
    "default_sysroot",
    "load_descriptor",
    "save_descriptor",
]
