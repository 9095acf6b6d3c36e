"""
Make-variable expansion for copts and defines.

Values like ``-DCPU=$(TARGET_CPU)`` are expanded per configuration before they
reach a compile command. ``$$`` is a literal dollar sign.
"""

import re
from typing import Dict, List, Mapping

SUPPORTED_VARIABLES = ("TARGET_CPU", "COMPILATION_MODE", "BINDIR", "GENDIR")

_REFERENCE = re.compile(r"\$\$|\$\(([^)]*)\)")


class MakeVariableError(Exception):
    """Raised when a value references an undefined variable."""
    pass


def referenced_variables(value: str) -> List[str]:
    """List the variable names a value references, in order."""
    return [match.group(1) for match in _REFERENCE.finditer(value) if match.group(0) != "$$"]


def undefined_variables(value: str, defined=SUPPORTED_VARIABLES) -> List[str]:
    return [name for name in referenced_variables(value) if name not in defined]


def expand(value: str, variables: Mapping[str, str]) -> str:
    """Expand ``$(NAME)`` references.

    Args:
        value: Text to expand
        variables: Variable values

    Returns:
        Expanded text

    Raises:
        MakeVariableError: If a referenced variable is not defined
    """
    def substitute(match):
        if match.group(0) == "$$":
            return "$"
        name = match.group(1)
        if name not in variables:
            raise MakeVariableError(f"$({name}) not defined")
        return variables[name]

    return _REFERENCE.sub(substitute, value)


def variables_for(facts) -> Dict[str, str]:
    """Variable table for a set of platform facts."""
    return {
        "TARGET_CPU": facts.target_cpu,
        "COMPILATION_MODE": facts.compilation_mode,
        "BINDIR": facts.bin_root,
        "GENDIR": facts.genfiles_root,
    }
