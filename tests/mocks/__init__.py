"""
Test doubles for CrossKit components.

This package provides in-memory stand-ins for the host package manager and
the cross compiler, so tests never install packages or need a real toolchain.
"""

from .providers import FakeProvider, ScriptedRunner, command_result
from .compilers import FakeCompiler, elf_header, macho_header, pe_image

__all__ = [
    "FakeProvider",
    "ScriptedRunner",
    "command_result",
    "FakeCompiler",
    "elf_header",
    "macho_header",
    "pe_image",
]
