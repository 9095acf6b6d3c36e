"""
Dependency (.d) file parsing for header discovery.

Compilers invoked with ``-MD -MF <file>`` write a make-style rule listing every
file the translation unit read:

    build-out/ios_i386-fastbuild/bin/objc/_objs/lib/arc/a.o: objc/a.m \\
      objc/a.h objc/dir\\ with\\ space/b.h

The planner uses the parsed list to narrow a compile action's recorded inputs.
Parse failures surface as action execution failures and are never retried here.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple


class DotdParseError(Exception):
    """Raised when a dependency file is malformed."""
    pass


class ActionExecutionError(Exception):
    """Raised when an action cannot complete after it ran."""

    def __init__(self, message: str, action=None):
        super().__init__(message)
        self.action = action


@dataclass(frozen=True)
class DotdFile:
    """Parsed contents of a dependency file."""

    targets: Tuple[str, ...]
    dependencies: Tuple[str, ...]


def _tokenize(text: str) -> List[str]:
    """Split on unescaped whitespace, resolving ``\\ `` and ``$$`` escapes."""
    tokens = []
    current = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\" and index + 1 < len(text) and text[index + 1] in " \t#":
            current.append(text[index + 1])
            index += 2
            continue
        if char == "$" and index + 1 < len(text) and text[index + 1] == "$":
            current.append("$")
            index += 2
            continue
        if char in " \t":
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)
        index += 1
    if current:
        tokens.append("".join(current))
    return tokens


def _split_rule(line: str) -> Tuple[str, str]:
    """Split a rule at the first unescaped ``:`` followed by whitespace or end of line."""
    index = 0
    while index < len(line):
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char == ":" and (index + 1 == len(line) or line[index + 1] in " \t"):
            return line[:index], line[index + 1:]
        index += 1
    raise DotdParseError(f"missing ':' separator in rule '{line.strip()[:80]}'")


def parse_dotd(contents: Optional[str]) -> DotdFile:
    """Parse dependency file text.

    Args:
        contents: Text of the .d file

    Returns:
        DotdFile with targets and dependencies in file order (deduplicated)

    Raises:
        DotdParseError: If the contents are missing, empty, or not make rules
    """
    if contents is None:
        raise DotdParseError("no dependency file contents")

    # Join backslash-newline continuations into logical lines
    logical = contents.replace("\\\r\n", " ").replace("\\\n", " ")
    rules = [line for line in logical.splitlines() if line.strip() and not line.lstrip().startswith("#")]
    if not rules:
        raise DotdParseError("dependency file is empty")

    targets: List[str] = []
    dependencies: List[str] = []
    seen = set()
    for rule in rules:
        target_text, dependency_text = _split_rule(rule)
        rule_targets = _tokenize(target_text)
        if not rule_targets:
            raise DotdParseError(f"rule without target: '{rule.strip()[:80]}'")
        targets.extend(rule_targets)
        for dependency in _tokenize(dependency_text):
            if dependency not in seen:
                seen.add(dependency)
                dependencies.append(dependency)

    logging.debug(f"Parsed .d file: {len(targets)} targets, {len(dependencies)} dependencies")
    return DotdFile(targets=tuple(targets), dependencies=tuple(dependencies))
