"""
Unit tests for executable header inspection.
"""

import pytest

from crosskit.core.exceptions import BinaryInspectionError
from crosskit.cross.targets import ARCHITECTURES
from crosskit.validation.binary import (
    ELF_MACHINES,
    inspect_architecture,
    read_binary_info,
)
from tests.mocks import elf_header, macho_header, pe_image
from tests.mocks.compilers import EM_386, EM_AARCH64, EM_ARM, EM_RISCV, EM_X86_64


@pytest.fixture
def write_binary(tmp_path):
    def _write(data: bytes, name: str = "probe"):
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write


class TestElf:
    """Tests for ELF binaries."""

    @pytest.mark.parametrize(
        "machine,marker",
        [
            (EM_AARCH64, "AArch64"),
            (EM_ARM, "ARM"),
            (EM_X86_64, "Advanced Micro Devices X86-64"),
            (EM_386, "Intel 80386"),
            (EM_RISCV, "RISC-V"),
        ],
    )
    def test_markers(self, write_binary, machine, marker):
        """Test mapping e_machine to readelf machine names."""
        assert inspect_architecture(write_binary(elf_header(machine))) == marker

    def test_info_fields(self, write_binary):
        info = read_binary_info(write_binary(elf_header(EM_ARM, bits=32)))

        assert info.format == "ELF"
        assert info.machine == EM_ARM
        assert info.bits == 32
        assert info.endian == "little"

    def test_big_endian(self, write_binary):
        """Test that e_machine is read with the file's byte order."""
        info = read_binary_info(write_binary(elf_header(22, little_endian=False)))

        assert info.marker == "IBM S/390"
        assert info.endian == "big"

    def test_unknown_machine(self, write_binary):
        """Test that an unlisted machine is reported, not rejected."""
        assert inspect_architecture(write_binary(elf_header(0x1234))) == "unknown (0x1234)"

    def test_truncated(self, write_binary):
        with pytest.raises(BinaryInspectionError, match="Truncated ELF"):
            read_binary_info(write_binary(b"\x7fELF\x02\x01"))

    def test_corrupt_identification(self, write_binary):
        data = bytearray(elf_header(EM_AARCH64))
        data[4] = 9
        with pytest.raises(BinaryInspectionError, match="Corrupt"):
            read_binary_info(write_binary(bytes(data)))

    def test_every_target_marker_is_known(self):
        """Test that each catalogue architecture has an ELF machine entry."""
        known = set(ELF_MACHINES.values())
        for arch in ARCHITECTURES.values():
            assert arch.binary_marker in known, arch.name


class TestMachO:
    """Tests for Mach-O binaries."""

    def test_arm64(self, write_binary):
        info = read_binary_info(write_binary(macho_header(0x0100000C)))

        assert info.format == "Mach-O"
        assert info.marker == "AArch64"
        assert info.bits == 64

    def test_x86_64(self, write_binary):
        assert (
            inspect_architecture(write_binary(macho_header(0x01000007)))
            == "Advanced Micro Devices X86-64"
        )

    def test_fat_binary(self, write_binary):
        with pytest.raises(BinaryInspectionError, match="fat"):
            read_binary_info(write_binary(b"\xca\xfe\xba\xbe" + b"\x00" * 28))


class TestPe:
    """Tests for PE/COFF binaries."""

    @pytest.mark.parametrize(
        "machine,marker",
        [(0x8664, "Advanced Micro Devices X86-64"), (0xAA64, "AArch64"), (0x14C, "Intel 80386")],
    )
    def test_markers(self, write_binary, machine, marker):
        info = read_binary_info(write_binary(pe_image(machine), "probe.exe"))

        assert info.format == "PE"
        assert info.marker == marker

    def test_truncated_dos_header(self, write_binary):
        with pytest.raises(BinaryInspectionError, match="Truncated DOS"):
            read_binary_info(write_binary(b"MZ" + b"\x00" * 10))

    def test_missing_signature(self, write_binary):
        data = bytearray(pe_image(0x8664))
        data[0x40:0x44] = b"NE\x00\x00"
        with pytest.raises(BinaryInspectionError, match="PE signature"):
            read_binary_info(write_binary(bytes(data)))


class TestUnreadable:
    """Tests for files that are not executables."""

    def test_script(self, write_binary):
        with pytest.raises(BinaryInspectionError, match="Unrecognized"):
            read_binary_info(write_binary(b"#!/bin/sh\necho hi\n"))

    def test_empty_file(self, write_binary):
        with pytest.raises(BinaryInspectionError):
            read_binary_info(write_binary(b""))

    def test_missing_file(self, tmp_path):
        with pytest.raises(BinaryInspectionError, match="Cannot read"):
            read_binary_info(tmp_path / "missing")
