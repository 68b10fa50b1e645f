"""
Probe programs used to validate a cross toolchain.

Each probe is a minimal program whose only purpose is to prove that the
compiler, headers and linker cooperate and emit code for the target.
"""

from typing import List

from crosskit.toolchain.descriptor import ToolchainDescriptor
from crosskit.validation.validator import ValidationCheck

C_PROBE = """\
#include <stdio.h>

int main(void) {
    printf("Hello from CrossKit!\\n");
    return 0;
}
"""

CXX_PROBE = """\
#include <iostream>
#include <string>

int main() {
    std::string greeting = "Hello from CrossKit!";
    std::cout << greeting << std::endl;
    return 0;
}
"""


def default_checks(
    descriptor: ToolchainDescriptor, static_probe: bool = False
) -> List[ValidationCheck]:
    """
    Build the standard validation checks for a descriptor's target.

    Args:
        descriptor: Toolchain descriptor
        static_probe: Also check fully static linking against the sysroot

    Returns:
        Ordered list of pending ValidationCheck
    """
    marker = descriptor.triple.architecture.binary_marker

    checks = [
        ValidationCheck(
            name="c-probe",
            probe_source=C_PROBE,
            expected_architecture_marker=marker,
            language="c",
        ),
        ValidationCheck(
            name="cxx-probe",
            probe_source=CXX_PROBE,
            expected_architecture_marker=marker,
            language="c++",
        ),
    ]

    if static_probe:
        checks.append(
            ValidationCheck(
                name="c-static-probe",
                probe_source=C_PROBE,
                expected_architecture_marker=marker,
                language="c",
                extra_flags=("-static",),
            )
        )

    return checks


__all__ = ["C_PROBE", "CXX_PROBE", "default_checks"]
