"""
Executable header inspection.

Reads the machine-type field of a compiled probe binary and maps it to an
architecture marker. Markers use readelf's vocabulary ("AArch64", "ARM",
"Advanced Micro Devices X86-64", ...) for every format, so one expected marker
per target works for ELF, Mach-O and PE output alike.
"""

import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

from crosskit.core.exceptions import BinaryInspectionError

logger = logging.getLogger(__name__)

# ELF e_machine values
ELF_MACHINES: Dict[int, str] = {
    3: "Intel 80386",
    8: "MIPS R3000",
    20: "PowerPC",
    21: "PowerPC64",
    22: "IBM S/390",
    40: "ARM",
    62: "Advanced Micro Devices X86-64",
    183: "AArch64",
    243: "RISC-V",
}

_MACHO_ABI64 = 0x01000000

# Mach-O cputype values
MACHO_CPU_TYPES: Dict[int, str] = {
    7: "Intel 80386",
    7 | _MACHO_ABI64: "Advanced Micro Devices X86-64",
    12: "ARM",
    12 | _MACHO_ABI64: "AArch64",
    18 | _MACHO_ABI64: "PowerPC64",
}

# PE/COFF Machine values
PE_MACHINES: Dict[int, str] = {
    0x014C: "Intel 80386",
    0x8664: "Advanced Micro Devices X86-64",
    0x01C4: "ARM",
    0xAA64: "AArch64",
    0x5064: "RISC-V",
}

_ELF_MAGIC = b"\x7fELF"
_MACHO_MAGICS = {
    b"\xfe\xed\xfa\xce": ">",
    b"\xfe\xed\xfa\xcf": ">",
    b"\xce\xfa\xed\xfe": "<",
    b"\xcf\xfa\xed\xfe": "<",
}
_FAT_MAGIC = b"\xca\xfe\xba\xbe"


@dataclass(frozen=True)
class BinaryInfo:
    """Header facts of a compiled binary."""

    format: str
    machine: int
    marker: str
    bits: int
    endian: str


def _marker(table: Dict[int, str], machine: int) -> str:
    return table.get(machine, f"unknown (0x{machine:x})")


def read_binary_info(path: Path) -> BinaryInfo:
    """
    Read the executable header of a binary.

    Args:
        path: Path to an ELF, Mach-O or PE file

    Returns:
        BinaryInfo with the architecture marker

    Raises:
        BinaryInspectionError: If the file is missing, truncated or of an
            unrecognized format
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            header = f.read(64)
            if header[:2] == b"MZ":
                return _read_pe(f, header, path)
    except OSError as e:
        raise BinaryInspectionError(f"Cannot read binary {path}: {e}") from e

    if header[:4] == _ELF_MAGIC:
        return _read_elf(header, path)
    if header[:4] in _MACHO_MAGICS:
        return _read_macho(header, path)
    if header[:4] == _FAT_MAGIC:
        raise BinaryInspectionError(f"Universal (fat) binaries are not supported: {path}")

    raise BinaryInspectionError(f"Unrecognized executable format: {path}")


def _read_elf(header: bytes, path: Path) -> BinaryInfo:
    if len(header) < 20:
        raise BinaryInspectionError(f"Truncated ELF header: {path}")

    ei_class, ei_data = header[4], header[5]
    if ei_class not in (1, 2) or ei_data not in (1, 2):
        raise BinaryInspectionError(f"Corrupt ELF identification bytes: {path}")

    endian = "<" if ei_data == 1 else ">"
    (machine,) = struct.unpack_from(f"{endian}H", header, 18)
    return BinaryInfo(
        format="ELF",
        machine=machine,
        marker=_marker(ELF_MACHINES, machine),
        bits=32 if ei_class == 1 else 64,
        endian="little" if ei_data == 1 else "big",
    )


def _read_macho(header: bytes, path: Path) -> BinaryInfo:
    if len(header) < 8:
        raise BinaryInspectionError(f"Truncated Mach-O header: {path}")

    endian = _MACHO_MAGICS[header[:4]]
    (cputype,) = struct.unpack_from(f"{endian}I", header, 4)
    return BinaryInfo(
        format="Mach-O",
        machine=cputype,
        marker=_marker(MACHO_CPU_TYPES, cputype),
        bits=64 if cputype & _MACHO_ABI64 else 32,
        endian="little" if endian == "<" else "big",
    )


def _read_pe(f, header: bytes, path: Path) -> BinaryInfo:
    if len(header) < 0x40:
        raise BinaryInspectionError(f"Truncated DOS header: {path}")

    (pe_offset,) = struct.unpack_from("<I", header, 0x3C)
    f.seek(pe_offset)
    signature = f.read(6)
    if len(signature) < 6 or signature[:4] != b"PE\x00\x00":
        raise BinaryInspectionError(f"Missing PE signature: {path}")

    (machine,) = struct.unpack_from("<H", signature, 4)
    return BinaryInfo(
        format="PE",
        machine=machine,
        marker=_marker(PE_MACHINES, machine),
        bits=64 if machine in (0x8664, 0xAA64) else 32,
        endian="little",
    )


def inspect_architecture(path: Path) -> str:
    """Return the architecture marker of a binary (e.g., 'AArch64')."""
    info = read_binary_info(path)
    logger.debug(f"{path.name}: {info.format} {info.bits}-bit {info.marker}")
    return info.marker


__all__ = [
    "BinaryInfo",
    "read_binary_info",
    "inspect_architecture",
    "ELF_MACHINES",
    "MACHO_CPU_TYPES",
    "PE_MACHINES",
]
