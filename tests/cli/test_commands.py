"""
Tests for the CLI commands.

Tests cover:
- detect: text and JSON output, unsupported host
- generate: files and descriptor written, missing target
- install: success, rollback on failure, validation failure, --skip-validation
- validate: persisted descriptor reuse and explicit overrides
- uninstall: reverse-order removal and --purge

The package provider and the validation run are replaced with fakes, so no
package is ever installed and no compiler is needed.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from crosskit.cli.commands.validate import run_validation
from crosskit.cli.parser import CLI
from crosskit.config.parser import CrossKitConfig
from crosskit.core.exceptions import UnsupportedPlatformError
from crosskit.generators import generated_filenames
from crosskit.toolchain import load_descriptor
from crosskit.validation.validator import CheckStatus, ValidationCheck
from tests.mocks import FakeProvider

TARGET = "aarch64-unknown-linux-gnu"
ALL_COMPONENTS = {"c-compiler", "c++-compiler", "binutils", "libc-headers", "debugger"}


def check(status=CheckStatus.PASS, detail=""):
    return ValidationCheck(
        name="c-probe",
        probe_source="int main(void){return 0;}",
        expected_architecture_marker="AArch64",
        status=status,
        detail=detail,
        detected_architecture_marker="AArch64" if status is CheckStatus.PASS else None,
    )


def run_cli(tmp_path, *argv):
    return CLI().run([*argv, "--platform", "debian", "--project-root", str(tmp_path)])


@pytest.fixture
def provider(isolated_work_dir):
    fake = FakeProvider()
    with patch("crosskit.cli.commands.install.create_provider", return_value=fake):
        yield fake


@pytest.fixture
def passing_validation():
    with patch(
        "crosskit.cli.commands.install.run_validation", return_value=[check()]
    ) as mock_validation:
        yield mock_validation


class TestDetectCommand:
    """Test the detect command."""

    def test_text_output(self, tmp_path, capsys):
        assert run_cli(tmp_path, "detect") == 0

        out = capsys.readouterr().out
        assert "Platform family:  debian" in out
        assert "Package provider: apt" in out

    def test_json_output(self, tmp_path, capsys):
        assert run_cli(tmp_path, "detect", "--format", "json") == 0

        data = json.loads(capsys.readouterr().out)
        assert data["family"] == "debian"
        assert data["package_provider"] == "apt"

    def test_unsupported_host(self, tmp_path, capsys):
        with patch(
            "crosskit.cli.commands.detect.detect_platform",
            side_effect=UnsupportedPlatformError("Unsupported Linux distribution"),
        ):
            assert CLI().run(["detect"]) == 2

        assert "Unsupported Linux distribution" in capsys.readouterr().err


class TestGenerateCommand:
    """Test the generate command."""

    def test_writes_all_files(self, tmp_path):
        assert run_cli(tmp_path, "generate", "--target", TARGET) == 0

        output_dir = tmp_path / ".crosskit"
        for name in generated_filenames(TARGET):
            assert (output_dir / name).is_file()
        descriptor = load_descriptor(output_dir / "toolchain.json")
        assert descriptor.target_triple == TARGET

    def test_custom_output_dir(self, tmp_path):
        assert run_cli(tmp_path, "generate", "--target", TARGET, "--output-dir", "cross") == 0

        assert (tmp_path / "cross" / "toolchain.cmake").is_file()

    def test_missing_target(self, tmp_path, capsys):
        assert run_cli(tmp_path, "generate") == 1

        assert "No target triple configured" in capsys.readouterr().out
        assert not (tmp_path / ".crosskit").exists()

    def test_invalid_target(self, tmp_path):
        assert run_cli(tmp_path, "generate", "--target", "sparc64-linux-gnu") == 1

    def test_output_dir_is_a_file(self, tmp_path, capsys):
        (tmp_path / "cross").write_text("")

        code = run_cli(tmp_path, "generate", "--target", TARGET, "--output-dir", "cross")

        assert code == 1
        assert "Error:" in capsys.readouterr().out


class TestInstallCommand:
    """Test the install command."""

    def test_success(self, tmp_path, provider, passing_validation, capsys):
        assert run_cli(tmp_path, "install", "--target", TARGET) == 0

        assert provider.installed == ALL_COMPONENTS
        assert (tmp_path / ".crosskit" / "toolchain.cmake").is_file()
        passing_validation.assert_called_once()
        assert "CrossKit install: COMPLETE" in capsys.readouterr().out

    def test_no_optional(self, tmp_path, provider, passing_validation):
        assert run_cli(tmp_path, "install", "--target", TARGET, "--no-optional") == 0

        assert provider.installed == ALL_COMPONENTS - {"debugger"}

    def test_failure_rolls_back(self, tmp_path, provider, passing_validation):
        provider.fail_install = {"binutils"}

        assert run_cli(tmp_path, "install", "--target", TARGET) == 3

        assert provider.installed == set()
        assert not (tmp_path / ".crosskit").exists()
        passing_validation.assert_not_called()

    def test_failure_json_report(self, tmp_path, provider, passing_validation, capsys):
        provider.fail_install = {"binutils"}

        run_cli(tmp_path, "install", "--target", TARGET, "--format", "json")

        data = json.loads(capsys.readouterr().out)
        assert data["status"] == "failed"
        assert data["exit_code"] == 3
        failed = [o for o in data["outcomes"] if o["status"] == "failed"]
        assert [o["component"] for o in failed] == ["binutils"]

    def test_validation_failure_keeps_install(self, tmp_path, provider):
        failing = [check(CheckStatus.FAIL, "Binary targets ARM, expected AArch64")]
        with patch("crosskit.cli.commands.install.run_validation", return_value=failing):
            assert run_cli(tmp_path, "install", "--target", TARGET) == 4

        assert provider.installed == ALL_COMPONENTS
        assert (tmp_path / ".crosskit" / "toolchain.json").is_file()

    def test_skip_validation(self, tmp_path, provider, passing_validation):
        assert run_cli(tmp_path, "install", "--target", TARGET, "--skip-validation") == 0

        passing_validation.assert_not_called()

    def test_missing_target(self, tmp_path, provider):
        assert run_cli(tmp_path, "install") == 1

        assert provider.calls == []

    def test_relative_compiler_installs_nothing(self, tmp_path, provider, capsys):
        (tmp_path / "crosskit.yaml").write_text(
            f"version: 1\ntarget: {TARGET}\ncompilers:\n  cc: aarch64-linux-gnu-gcc\n"
        )

        assert run_cli(tmp_path, "install", "--skip-validation") == 1

        assert provider.calls == []
        assert "compilers.cc must be an absolute path" in capsys.readouterr().out

    def test_unrenderable_descriptor_installs_nothing(self, tmp_path, provider):
        (tmp_path / "crosskit.yaml").write_text(
            f"version: 1\ntarget: {TARGET}\nextra_flags: [\"-O2\\n-g\"]\n"
        )

        assert run_cli(tmp_path, "install", "--skip-validation") == 1

        assert provider.calls == []

    def test_unwritable_output_dir_still_reports(self, tmp_path, provider):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        report_path = tmp_path / "report.json"

        code = run_cli(
            tmp_path,
            "install",
            "--target",
            TARGET,
            "--skip-validation",
            "--output-dir",
            str(blocker),
            "--report",
            str(report_path),
        )

        assert code == 1
        data = json.loads(report_path.read_text())
        assert data["status"] == "failed"
        assert data["error"]["type"] == "FileExistsError"
        assert {o["status"] for o in data["outcomes"]} == {"installed"}
        # a write failure after install is not an install failure
        assert provider.installed == ALL_COMPONENTS

    def test_interrupt_during_validation(self, tmp_path, provider):
        report_path = tmp_path / "report.json"
        with patch(
            "crosskit.cli.commands.install.run_validation", side_effect=KeyboardInterrupt
        ):
            code = run_cli(
                tmp_path, "install", "--target", TARGET, "--report", str(report_path)
            )

        assert code == 130
        data = json.loads(report_path.read_text())
        assert data["exit_code"] == 130
        assert data["error"]["type"] == "KeyboardInterrupt"
        assert data["generated_files"]
        assert provider.installed == ALL_COMPONENTS

    def test_report_file(self, tmp_path, provider, passing_validation):
        report_path = tmp_path / "report.json"

        run_cli(tmp_path, "install", "--target", TARGET, "--report", str(report_path))

        data = json.loads(report_path.read_text())
        assert data["command"] == "install"
        assert data["checks"][0]["status"] == "pass"


class TestValidateCommand:
    """Test the validate command."""

    def test_uses_persisted_descriptor(self, tmp_path):
        (tmp_path / "crosskit.yaml").write_text(
            f"version: 1\ntarget: {TARGET}\ncpu_tuning: cortex-a72\n"
        )
        assert run_cli(tmp_path, "generate") == 0
        # later config edits do not affect the recorded toolchain
        (tmp_path / "crosskit.yaml").write_text(f"version: 1\ntarget: {TARGET}\n")

        with patch(
            "crosskit.cli.commands.validate.run_validation", return_value=[check()]
        ) as mock_validation:
            assert run_cli(tmp_path, "validate") == 0

        descriptor = mock_validation.call_args[0][2]
        assert descriptor.cpu_tuning == "cortex-a72"

    def test_target_override_rebuilds(self, tmp_path):
        assert run_cli(tmp_path, "generate", "--target", TARGET) == 0

        with patch(
            "crosskit.cli.commands.validate.run_validation", return_value=[check()]
        ) as mock_validation:
            run_cli(tmp_path, "validate", "--target", "riscv64-linux-gnu")

        descriptor = mock_validation.call_args[0][2]
        assert descriptor.target_triple == "riscv64-linux-gnu"

    def test_failure_exit_code(self, tmp_path):
        failing = [check(CheckStatus.FAIL, "Compilation failed")]
        with patch("crosskit.cli.commands.validate.run_validation", return_value=failing):
            assert run_cli(tmp_path, "validate", "--target", TARGET) == 4

    def test_run_validation_uses_run_directory(self, tmp_path):
        config = CrossKitConfig(work_dir=str(tmp_path / "work"))
        args = MagicMock(project_root=tmp_path)
        descriptor = MagicMock()
        seen = []

        def fake_validate(checks, run_dir):
            seen.append(run_dir)
            assert run_dir.is_dir()
            return []

        with patch("crosskit.cli.commands.validate.Validator") as mock_validator, patch(
            "crosskit.cli.commands.validate.default_checks", return_value=[]
        ):
            mock_validator.return_value.validate.side_effect = fake_validate
            assert run_validation(args, config, descriptor) == []

        assert seen[0].parent == (tmp_path / "work").resolve()
        assert not seen[0].exists()


class TestUninstallCommand:
    """Test the uninstall command."""

    def test_removes_in_reverse_order(self, tmp_path, provider):
        provider.installed = set(ALL_COMPONENTS)

        assert run_cli(tmp_path, "uninstall", "--target", TARGET) == 0

        assert provider.installed == set()
        removed = [name for action, name in provider.mutations() if action == "uninstall"]
        assert removed == [
            "debugger",
            "libc-headers",
            "binutils",
            "c++-compiler",
            "c-compiler",
        ]

    def test_purge(self, tmp_path, provider):
        assert run_cli(tmp_path, "generate", "--target", TARGET) == 0
        keep = tmp_path / ".crosskit" / "notes.txt"
        keep.write_text("mine")

        assert run_cli(tmp_path, "uninstall", "--target", TARGET, "--purge") == 0

        assert sorted(p.name for p in (tmp_path / ".crosskit").iterdir()) == ["notes.txt"]

    def test_without_purge_keeps_files(self, tmp_path, provider):
        run_cli(tmp_path, "generate", "--target", TARGET)

        run_cli(tmp_path, "uninstall", "--target", TARGET)

        assert (tmp_path / ".crosskit" / "toolchain.cmake").is_file()

    def test_removal_failure(self, tmp_path, provider):
        provider.installed = set(ALL_COMPONENTS)
        provider.fail_uninstall = {"binutils"}

        assert run_cli(tmp_path, "uninstall", "--target", TARGET) == 3
