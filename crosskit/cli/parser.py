"""
CrossKit CLI argument parser.

This module implements the command-line interface for CrossKit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from crosskit.core.platform import SUPPORTED_FAMILIES
from crosskit.report.reporter import EXIT_ERROR, EXIT_INTERRUPTED

# Get version from package
try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("crosskit")
except PackageNotFoundError:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)


class CLI:
    """CrossKit command-line interface."""

    # Command module mapping
    COMMANDS = {
        "install": "crosskit.cli.commands.install",
        "validate": "crosskit.cli.commands.validate",
        "uninstall": "crosskit.cli.commands.uninstall",
        "generate": "crosskit.cli.commands.generate",
        "detect": "crosskit.cli.commands.detect",
    }

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="crosskit",
            description="CrossKit - cross-compilation environment provisioner",
            epilog='Use "crosskit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "--version", action="version", version=f"CrossKit {__version__}"
        )

        common = self._create_common_parser()

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers, common)
        self._add_validate_command(subparsers, common)
        self._add_uninstall_command(subparsers, common)
        self._add_generate_command(subparsers, common)
        self._add_detect_command(subparsers, common)

        return parser

    def _create_common_parser(self) -> argparse.ArgumentParser:
        """Options shared by every subcommand."""
        common = argparse.ArgumentParser(add_help=False)
        common.add_argument(
            "--platform",
            choices=[family.value for family in SUPPORTED_FAMILIES],
            help="Skip host detection and use this platform family",
        )
        common.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        common.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        common.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./crosskit.yaml)",
        )
        common.add_argument(
            "--project-root",
            type=Path,
            metavar="PATH",
            default=Path.cwd(),
            help="Project root directory (default: current directory)",
        )
        common.add_argument(
            "--format",
            choices=["text", "json"],
            default="text",
            help="Output format for the run report (default: text)",
        )
        common.add_argument(
            "--report",
            type=Path,
            metavar="PATH",
            help="Also write the JSON report to this file",
        )
        return common

    def _add_toolchain_arguments(self, parser):
        """Options describing the target toolchain."""
        parser.add_argument(
            "--target",
            metavar="TRIPLE",
            help="Target triple (e.g., aarch64-unknown-linux-gnu)",
        )
        parser.add_argument(
            "--sysroot", type=Path, metavar="PATH", help="Target system root"
        )
        parser.add_argument(
            "--output-dir",
            type=Path,
            metavar="PATH",
            help="Directory for generated files (default: .crosskit)",
        )

    def _add_execution_arguments(self, parser):
        """Concurrency and timeout options."""
        parser.add_argument(
            "--jobs",
            "-j",
            type=int,
            metavar="N",
            help="Maximum concurrent installs/checks (default: 1)",
        )
        parser.add_argument(
            "--timeout",
            type=float,
            metavar="SECONDS",
            help="Timeout per package manager or compiler call",
        )

    def _add_install_command(self, subparsers, common):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            parents=[common],
            help="Install, configure and validate a cross toolchain",
            description=(
                "Install the cross toolchain components for a target, roll back on "
                "failure, generate build-system files and validate the result"
            ),
        )
        self._add_toolchain_arguments(parser)
        self._add_execution_arguments(parser)
        parser.add_argument(
            "--use-sudo",
            choices=["auto", "always", "never"],
            help="Privilege escalation for the package manager (default: auto)",
        )
        parser.add_argument(
            "--no-optional",
            action="store_true",
            help="Skip optional components (e.g., debugger)",
        )
        parser.add_argument(
            "--skip-validation",
            action="store_true",
            help="Do not compile probe programs after installing",
        )
        parser.add_argument(
            "--static-probe",
            action="store_true",
            help="Also validate fully static linking",
        )

    def _add_validate_command(self, subparsers, common):
        """Add 'validate' subcommand."""
        parser = subparsers.add_parser(
            "validate",
            parents=[common],
            help="Compile probe programs and check their architecture",
            description=(
                "Validate the toolchain recorded by the last install "
                "(or described by configuration)"
            ),
        )
        self._add_toolchain_arguments(parser)
        self._add_execution_arguments(parser)
        parser.add_argument(
            "--static-probe",
            action="store_true",
            help="Also validate fully static linking",
        )

    def _add_uninstall_command(self, subparsers, common):
        """Add 'uninstall' subcommand."""
        parser = subparsers.add_parser(
            "uninstall",
            parents=[common],
            help="Remove the cross toolchain components",
            description="Remove installed components in reverse order",
        )
        self._add_toolchain_arguments(parser)
        self._add_execution_arguments(parser)
        parser.add_argument(
            "--use-sudo",
            choices=["auto", "always", "never"],
            help="Privilege escalation for the package manager (default: auto)",
        )
        parser.add_argument(
            "--purge",
            action="store_true",
            help="Also delete generated files from the output directory",
        )

    def _add_generate_command(self, subparsers, common):
        """Add 'generate' subcommand."""
        parser = subparsers.add_parser(
            "generate",
            parents=[common],
            help="Generate build-system files without installing",
            description=(
                "Write CMake, Autotools, pkg-config and Meson files plus env.sh "
                "for the configured toolchain"
            ),
        )
        self._add_toolchain_arguments(parser)

    def _add_detect_command(self, subparsers, common):
        """Add 'detect' subcommand."""
        subparsers.add_parser(
            "detect",
            parents=[common],
            help="Show the detected host platform",
            description="Print the platform family and package provider CrossKit uses",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        # Check if command specified
        if not parsed_args.command:
            self.parser.print_help()
            return EXIT_ERROR

        # Configure logging
        self._configure_logging(parsed_args)

        # Dispatch to command handler
        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return EXIT_INTERRUPTED
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return EXIT_ERROR

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        module_name = self.COMMANDS.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return EXIT_ERROR

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
