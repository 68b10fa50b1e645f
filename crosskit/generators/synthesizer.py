"""
Environment configuration synthesizer.

Projects a ToolchainDescriptor into build-system specific files:

- toolchain.cmake          CMake toolchain file
- config.site              Autotools site file (CONFIG_SITE)
- <triple>-toolchain.pc    pkg-config metadata describing the toolchain
- cross.ini                Meson cross file
- env.sh                   POSIX shell script exporting the environment

synthesize() is pure: no timestamps, no host lookups, sorted/fixed ordering,
so an unchanged descriptor renders byte-identical text. Every output is
rendered from one shared context, which is what keeps the compiler paths and
sysroot identical across files. Writing is a separate boundary step
(write_configs) that leaves unchanged files untouched.
"""

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from crosskit.core.exceptions import ConfigError, ConfigSynthesisError
from crosskit.core.filesystem import write_if_changed
from crosskit.toolchain.descriptor import TOOL_NAMES, ToolchainDescriptor

logger = logging.getLogger(__name__)

CMAKE_FILENAME = "toolchain.cmake"
AUTOTOOLS_SITE_FILENAME = "config.site"
MESON_CROSS_FILENAME = "cross.ini"
ENV_SCRIPT_FILENAME = "env.sh"


@dataclass(frozen=True)
class SynthesizedConfig:
    """Rendered text of every generated file for one descriptor."""

    cmake_text: str
    autotools_site_text: str
    pkg_config_text: str
    meson_cross_text: str
    env_script_text: str
    pkg_config_filename: str

    def files(self) -> Dict[str, str]:
        """Mapping of output filename to content, in a fixed order."""
        return {
            CMAKE_FILENAME: self.cmake_text,
            AUTOTOOLS_SITE_FILENAME: self.autotools_site_text,
            self.pkg_config_filename: self.pkg_config_text,
            MESON_CROSS_FILENAME: self.meson_cross_text,
            ENV_SCRIPT_FILENAME: self.env_script_text,
        }


# ============================================================================
# Quoting filters
# ============================================================================


def _cmake_quote(value) -> str:
    text = str(value).replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$")
    return f'"{text}"'


def _meson_quote(value) -> str:
    text = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{text}'"


def _meson_list(values) -> str:
    return "[" + ", ".join(_meson_quote(v) for v in values) + "]"


def _pc_escape(value) -> str:
    return str(value).replace("$", "$$").replace(" ", "\\ ")


def _sh_quote(value) -> str:
    return shlex.quote(str(value))


def _sh_words(values) -> str:
    return shlex.quote(" ".join(str(v) for v in values))


# ============================================================================
# Synthesizer
# ============================================================================


class ConfigSynthesizer:
    """
    Renders build-system files from a ToolchainDescriptor.

    Example:
        >>> synthesizer = ConfigSynthesizer()
        >>> result = synthesizer.synthesize(descriptor)
        >>> print(result.cmake_text)
    """

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Initialize synthesizer.

        Args:
            template_dir: Alternative template directory (default: built-in)
        """
        self.template_dir = Path(template_dir or Path(__file__).parent / "templates")
        if not self.template_dir.is_dir():
            raise ConfigSynthesisError(f"Template directory not found: {self.template_dir}")

        self._jinja_env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )
        self._jinja_env.filters.update(
            cmake=_cmake_quote,
            meson=_meson_quote,
            meson_list=_meson_list,
            pc=_pc_escape,
            sh=_sh_quote,
            sh_words=_sh_words,
        )

    def synthesize(self, descriptor: ToolchainDescriptor) -> SynthesizedConfig:
        """
        Render every generated file.

        Args:
            descriptor: Canonical toolchain descriptor

        Returns:
            SynthesizedConfig

        Raises:
            ConfigSynthesisError: If the descriptor cannot be rendered
        """
        context = self._build_context(descriptor)

        return SynthesizedConfig(
            cmake_text=self._render("toolchain.cmake.j2", context),
            autotools_site_text=self._render("config.site.j2", context),
            pkg_config_text=self._render("toolchain.pc.j2", context),
            meson_cross_text=self._render("cross.ini.j2", context),
            env_script_text=self._render("env.sh.j2", context),
            pkg_config_filename=pkg_config_filename(context["triple"]),
        )

    def _render(self, template_name: str, context: dict) -> str:
        try:
            template = self._jinja_env.get_template(template_name)
            return template.render(**context)
        except TemplateError as e:
            raise ConfigSynthesisError(
                f"Failed to render template {template_name}: {e}"
            ) from e

    def _build_context(self, descriptor: ToolchainDescriptor) -> dict:
        """Derive the single rendering context shared by all templates."""
        try:
            triple = descriptor.triple
        except ConfigError as e:
            raise ConfigSynthesisError(f"Cannot render target: {e}") from e

        tools: Dict[str, Optional[str]] = {}
        for name in TOOL_NAMES:
            path = getattr(descriptor.compilers, name)
            tools[name] = _checked_path(path, name) if path is not None else None

        if not tools["cc"]:
            raise ConfigSynthesisError("Descriptor has no C compiler path")

        sysroot = (
            _checked_path(descriptor.sysroot, "sysroot")
            if descriptor.sysroot is not None
            else None
        )

        # CMake and Meson pass the sysroot themselves; they only get tuning flags
        tuning_flags: List[str] = []
        if descriptor.cpu_tuning:
            tuning_flags.append(f"-mcpu={descriptor.cpu_tuning}")
        tuning_flags.extend(descriptor.extra_flags)
        for flag in tuning_flags:
            if "\n" in flag:
                raise ConfigSynthesisError(f"Compiler flag contains a newline: {flag!r}")

        sysroot_flags = [f"--sysroot={sysroot}"] if sysroot else []
        pkg_config_libdir = _pkg_config_libdirs(sysroot, triple.gnu_prefix)
        arch = triple.architecture

        return {
            "triple": triple.original,
            "gnu_prefix": triple.gnu_prefix,
            "system_name": triple.cmake_system_name,
            "meson_system": triple.os,
            "processor": arch.cmake_processor,
            "cpu_family": arch.meson_cpu_family,
            "cpu": descriptor.cpu_tuning or arch.meson_cpu_family,
            "endian": arch.endian,
            "tools": tools,
            "sysroot": sysroot,
            "bin_dir": PurePosixPath(tools["cc"]).parent.as_posix(),
            "tuning_flags": tuning_flags,
            "compile_flags": sysroot_flags + tuning_flags,
            "link_flags": sysroot_flags,
            "pkg_config_libdir": ":".join(pkg_config_libdir),
            "pc_name": f"{triple.original}-toolchain",
        }


def _checked_path(path: Path, field_name: str) -> str:
    text = Path(path).as_posix()
    if not text or text == ".":
        raise ConfigSynthesisError(f"Descriptor field '{field_name}' is empty")
    if "\n" in text or "\r" in text:
        raise ConfigSynthesisError(f"Descriptor field '{field_name}' contains a newline")
    if not text.startswith("/"):
        raise ConfigSynthesisError(
            f"Descriptor field '{field_name}' must be an absolute path: {text}"
        )
    return text


def _pkg_config_libdirs(sysroot: Optional[str], gnu_prefix: str) -> List[str]:
    if not sysroot:
        return []
    root = PurePosixPath(sysroot)
    return [
        (root / "usr" / "lib" / gnu_prefix / "pkgconfig").as_posix(),
        (root / "usr" / "lib" / "pkgconfig").as_posix(),
        (root / "usr" / "share" / "pkgconfig").as_posix(),
        (root / "lib" / "pkgconfig").as_posix(),
    ]


def pkg_config_filename(target_triple: str) -> str:
    return f"{target_triple}-toolchain.pc"


def generated_filenames(target_triple: str) -> List[str]:
    """Names of every file write_configs produces for a target."""
    return [
        CMAKE_FILENAME,
        AUTOTOOLS_SITE_FILENAME,
        pkg_config_filename(target_triple),
        MESON_CROSS_FILENAME,
        ENV_SCRIPT_FILENAME,
    ]


_default_synthesizer: Optional[ConfigSynthesizer] = None


def synthesize(descriptor: ToolchainDescriptor) -> SynthesizedConfig:
    """
    Render every generated file with the built-in templates.

    Example:
        >>> result = synthesize(descriptor)
        >>> result.files().keys()
        dict_keys(['toolchain.cmake', 'config.site', ...])
    """
    global _default_synthesizer
    if _default_synthesizer is None:
        _default_synthesizer = ConfigSynthesizer()
    return _default_synthesizer.synthesize(descriptor)


def write_configs(result: SynthesizedConfig, output_dir: Path) -> Dict[Path, bool]:
    """
    Write synthesized files into output_dir.

    Files whose content is unchanged are left alone so their mtime is stable.

    Args:
        result: Synthesized configuration
        output_dir: Destination directory

    Returns:
        Mapping of written path to whether it changed on disk
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = {}
    for filename, text in result.files().items():
        path = output_dir / filename
        changed = write_if_changed(path, text)
        if changed:
            # mkstemp creates 0600 files
            path.chmod(0o644)
        written[path] = changed
        logger.info(f"{'Wrote' if changed else 'Unchanged'}: {path}")

    return written


__all__ = [
    "SynthesizedConfig",
    "ConfigSynthesizer",
    "synthesize",
    "write_configs",
    "pkg_config_filename",
    "generated_filenames",
    "CMAKE_FILENAME",
    "AUTOTOOLS_SITE_FILENAME",
    "MESON_CROSS_FILENAME",
    "ENV_SCRIPT_FILENAME",
]
