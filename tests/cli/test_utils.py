"""Tests for CLI utility functions."""

import json
from argparse import Namespace
from pathlib import Path

import pytest

from crosskit.cli.utils import (
    EXIT_ERROR,
    EXIT_SUCCESS,
    descriptor_from_config,
    emit_report,
    load_settings,
    report_fatal,
    require_target,
    resolve_output_dir,
    resolve_project_root,
    resolve_work_dir,
    safe_print,
)
from crosskit.config.parser import CrossKitConfig
from crosskit.core.exceptions import ConfigError, UnsupportedPlatformError
from crosskit.core.platform import PlatformFamily, PlatformProfile
from crosskit.report.reporter import Reporter


def make_args(project_root, **kwargs):
    defaults = {
        "project_root": project_root,
        "config": None,
        "target": None,
        "sysroot": None,
        "output_dir": None,
        "jobs": None,
        "timeout": None,
        "use_sudo": None,
        "no_optional": False,
        "static_probe": False,
        "format": "text",
        "report": None,
        "quiet": False,
    }
    defaults.update(kwargs)
    return Namespace(**defaults)


class TestLoadSettings:
    def test_defaults_without_config_file(self, tmp_path):
        config = load_settings(make_args(tmp_path))

        assert config.target is None
        assert config.install.workers == 1
        assert config.install.use_sudo == "auto"

    def test_reads_project_config(self, tmp_path):
        (tmp_path / "crosskit.yaml").write_text(
            "version: 1\ntarget: riscv64-linux-gnu\ninstall:\n  workers: 2\n"
        )

        config = load_settings(make_args(tmp_path))

        assert config.target == "riscv64-linux-gnu"
        assert config.install.workers == 2

    def test_relative_config_resolved_against_project_root(self, tmp_path):
        (tmp_path / "ck.yaml").write_text("version: 1\ntarget: arm-linux-gnueabihf\n")

        config = load_settings(make_args(tmp_path, config=Path("ck.yaml")))

        assert config.target == "arm-linux-gnueabihf"

    def test_command_line_overrides(self, tmp_path):
        (tmp_path / "crosskit.yaml").write_text("version: 1\ntarget: riscv64-linux-gnu\n")

        config = load_settings(
            make_args(
                tmp_path,
                target="aarch64-linux-gnu",
                sysroot=Path("/opt/sysroot"),
                output_dir=Path("out"),
                jobs=3,
                timeout=12.5,
                use_sudo="never",
                no_optional=True,
                static_probe=True,
            )
        )

        assert config.target == "aarch64-linux-gnu"
        assert config.sysroot == "/opt/sysroot"
        assert config.output_dir == "out"
        assert config.install.workers == 3
        assert config.validation.workers == 3
        assert config.install.timeout == 12.5
        assert config.validation.timeout == 12.5
        assert config.install.use_sudo == "never"
        assert config.install.include_optional is False
        assert config.validation.static_probe is True

    @pytest.mark.parametrize(
        "override,message",
        [
            ({"jobs": 0}, "--jobs"),
            ({"timeout": 0}, "--timeout"),
            ({"timeout": -5.0}, "--timeout"),
        ],
    )
    def test_invalid_overrides(self, tmp_path, override, message):
        with pytest.raises(ConfigError, match=message):
            load_settings(make_args(tmp_path, **override))


class TestTargetAndDescriptor:
    def test_require_target(self):
        assert require_target(CrossKitConfig(target="aarch64-linux-gnu")) == "aarch64-linux-gnu"

    def test_require_target_missing(self):
        with pytest.raises(ConfigError, match="No target triple"):
            require_target(CrossKitConfig())

    def test_descriptor_from_config(self):
        config = CrossKitConfig(
            target="aarch64-linux-gnu",
            sysroot="/opt/sysroot",
            compilers={"cc": "/opt/bin/cc"},
            cpu_tuning="cortex-a53",
            extra_flags=["-O2"],
        )
        profile = PlatformProfile.for_family(PlatformFamily.DEBIAN)

        descriptor = descriptor_from_config(config, profile)

        assert descriptor.compilers.cc == Path("/opt/bin/cc")
        assert descriptor.sysroot == Path("/opt/sysroot")
        assert descriptor.cpu_tuning == "cortex-a53"
        assert descriptor.extra_flags == ("-O2",)


class TestPathUtilities:
    def test_resolve_project_root_default(self):
        assert resolve_project_root() == Path.cwd().resolve()

    def test_resolve_project_root(self, tmp_path):
        assert resolve_project_root(tmp_path) == tmp_path.resolve()

    def test_output_dir_relative(self, tmp_path):
        args = make_args(tmp_path)
        assert resolve_output_dir(args, CrossKitConfig()) == tmp_path.resolve() / ".crosskit"

    def test_output_dir_absolute(self, tmp_path):
        config = CrossKitConfig(output_dir=str(tmp_path / "abs"))
        assert resolve_output_dir(make_args(Path("/elsewhere")), config) == tmp_path / "abs"

    def test_work_dir(self, tmp_path):
        args = make_args(tmp_path)
        assert resolve_work_dir(args, CrossKitConfig()) is None
        assert resolve_work_dir(args, CrossKitConfig(work_dir="work")) == (
            tmp_path.resolve() / "work"
        )


class TestReportOutput:
    def test_text_report(self, tmp_path, capsys):
        report = Reporter.build("generate", target_triple="aarch64-linux-gnu")

        assert emit_report(report, make_args(tmp_path)) == EXIT_SUCCESS
        assert "CrossKit generate: COMPLETE" in capsys.readouterr().out

    def test_quiet_suppresses_success(self, tmp_path, capsys):
        report = Reporter.build("generate")

        emit_report(report, make_args(tmp_path, quiet=True))

        assert capsys.readouterr().out == ""

    def test_quiet_still_prints_failure(self, tmp_path, capsys):
        report = Reporter.build("generate", error=ConfigError("bad config"))

        assert emit_report(report, make_args(tmp_path, quiet=True)) == EXIT_ERROR
        assert "Error: bad config" in capsys.readouterr().out

    def test_json_report(self, tmp_path, capsys):
        report = Reporter.build("detect", platform_family="debian")

        emit_report(report, make_args(tmp_path, format="json"))

        data = json.loads(capsys.readouterr().out)
        assert data["command"] == "detect"
        assert data["exit_code"] == 0

    def test_report_file(self, tmp_path):
        report_path = tmp_path / "reports" / "run.json"
        report = Reporter.build("generate")

        emit_report(report, make_args(tmp_path, quiet=True, report=report_path))

        assert json.loads(report_path.read_text())["schema_version"] == 1

    def test_report_fatal(self, tmp_path, capsys):
        code = report_fatal(
            "install",
            UnsupportedPlatformError("Unsupported Linux distribution"),
            make_args(tmp_path),
        )

        assert code == 2
        assert "Unsupported Linux distribution" in capsys.readouterr().out


class TestSafePrint:
    def test_plain(self, capsys):
        safe_print("✓ done")
        assert capsys.readouterr().out == "✓ done\n"

    def test_ascii_fallback(self):
        class AsciiStream:
            def __init__(self):
                self.parts = []

            def write(self, text):
                text.encode("ascii")
                self.parts.append(text)

            def flush(self):
                pass

        stream = AsciiStream()
        safe_print("✓ ok ✗ failed ↺ undone", file=stream)

        assert "".join(stream.parts) == "[OK] ok [FAIL] failed [UNDO] undone\n"
