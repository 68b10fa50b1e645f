"""Probe compilation and binary architecture validation."""

from crosskit.validation.binary import BinaryInfo, inspect_architecture, read_binary_info
from crosskit.validation.probes import default_checks
from crosskit.validation.validator import CheckStatus, ValidationCheck, Validator

__all__ = [
    "BinaryInfo",
    "inspect_architecture",
    "read_binary_info",
    "default_checks",
    "CheckStatus",
    "ValidationCheck",
    "Validator",
]
