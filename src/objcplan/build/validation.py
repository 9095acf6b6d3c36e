"""Validation Layer.

This module runs the cross-attribute checks on a TargetDeclaration before any
action is planned. Every check reports into a ValidationResult; errors are
fatal for the target, warnings are recorded and planning continues.

The checks in ``validate`` depend only on the declaration, so a target is
valid or invalid regardless of platform or compilation mode. The single
configuration-dependent check (resource attributes disabled by a flag) lives
in ``check_resources_allowed``.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from . import file_types
from .attributes import RuleKind, TargetDeclaration
from .make_variables import undefined_variables


@dataclass(frozen=True)
class RuleError:
    """A fatal problem with one declaration."""

    label: str
    rule_name: str
    message: str
    attribute: Optional[str] = None

    def __str__(self) -> str:
        if self.attribute:
            return f"in {self.attribute} attribute of {self.rule_name} rule {self.label}: {self.message}"
        return f"in {self.rule_name} rule {self.label}: {self.message}"


@dataclass(frozen=True)
class RuleWarning:
    """A non-fatal problem with one declaration."""

    label: str
    rule_name: str
    message: str
    attribute: Optional[str] = None

    def __str__(self) -> str:
        if self.attribute:
            return f"in {self.attribute} attribute of {self.rule_name} rule {self.label}: {self.message}"
        return f"in {self.rule_name} rule {self.label}: {self.message}"


class DeclarationError(Exception):
    """Raised when a declaration fails validation."""

    def __init__(self, label: str, errors: Iterable[RuleError]):
        self.label = label
        self.errors = tuple(errors)
        details = "\n".join(str(error) for error in self.errors)
        super().__init__(f"Analysis of target '{label}' failed:\n{details}")


@dataclass(frozen=True)
class ValidationResult:
    """Errors and warnings found for one declaration."""

    errors: Tuple[RuleError, ...] = ()
    warnings: Tuple[RuleWarning, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    def merged(self, other: "ValidationResult") -> "ValidationResult":
        return ValidationResult(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )

    def raise_for_errors(self, label: str) -> None:
        """Raise DeclarationError if any error was recorded."""
        if self.errors:
            raise DeclarationError(label, self.errors)


# Accepted file kinds per (rule kind, attribute)
CC_SRCS_TYPE = frozenset(
    ext for ext, language in file_types.LANGUAGE_BY_EXTENSION.items()
    if language not in (file_types.Language.OBJC, file_types.Language.OBJCPP)
) | file_types.HEADER_EXTENSIONS | file_types.OBJECT_EXTENSIONS

ALLOWED_TYPES = {
    (RuleKind.OBJC_LIBRARY, "srcs"): file_types.SRCS_TYPE,
    (RuleKind.OBJC_LIBRARY, "non_arc_srcs"): file_types.NON_ARC_SRCS_TYPE,
    (RuleKind.OBJC_LIBRARY, "pch"): frozenset([".pch"]),
    (RuleKind.CC_LIBRARY, "srcs"): CC_SRCS_TYPE,
    (RuleKind.OBJC_IMPORT, "archives"): frozenset([".a"]),
}

CONTAINER_TYPES = {
    "asset_catalogs": (file_types.ASSET_CATALOG_CONTAINER_TYPE,),
    "datamodels": file_types.DATAMODEL_CONTAINER_TYPES,
}

MODULES_CACHE_PATH_FLAG = "-fmodules-cache-path"

RESOURCES_DISABLED_MESSAGE = (
    "objc_library resource attributes are not allowed. "
    "Please use the 'data' attribute instead"
)


class _Collector:
    """Accumulates diagnostics for one declaration."""

    def __init__(self, declaration: TargetDeclaration):
        self.declaration = declaration
        self.label = str(declaration.label)
        self.errors: List[RuleError] = []
        self.warnings: List[RuleWarning] = []

    def error(self, message: str, attribute: Optional[str] = None) -> None:
        self.errors.append(RuleError(self.label, self.declaration.rule_name, message, attribute))

    def warning(self, message: str, attribute: Optional[str] = None) -> None:
        self.warnings.append(RuleWarning(self.label, self.declaration.rule_name, message, attribute))

    def result(self) -> ValidationResult:
        return ValidationResult(errors=tuple(self.errors), warnings=tuple(self.warnings))


def validate(declaration: TargetDeclaration) -> ValidationResult:
    """Run every configuration-independent check on a declaration.

    Args:
        declaration: Target declaration

    Returns:
        ValidationResult with every error and warning found
    """
    collector = _Collector(declaration)

    _check_file_kinds(collector)
    _check_includes(collector)
    _check_variables(collector)

    if declaration.kind is RuleKind.OBJC_LIBRARY:
        _check_arc_overlap(collector)
        _check_header_overlap(collector)
        _check_module_attributes(collector)
        _check_containers(collector)
        _check_copts(collector)

    result = collector.result()
    for warning in result.warnings:
        logging.warning(str(warning))
    if result.errors:
        logging.debug(f"{collector.label}: {len(result.errors)} validation error(s)")
    return result


def check_resources_allowed(declaration: TargetDeclaration, disabled: bool) -> ValidationResult:
    """Reject resource attributes when the configuration disables them.

    An attribute set to an empty list still counts as set.

    Args:
        declaration: Target declaration
        disabled: Whether resource attributes are disabled for this configuration

    Returns:
        ValidationResult with at most one error per set resource attribute
    """
    collector = _Collector(declaration)
    if disabled and declaration.kind is RuleKind.OBJC_LIBRARY:
        for attribute, _ in declaration.set_resource_attributes():
            collector.error(RESOURCES_DISABLED_MESSAGE, attribute)
    return collector.result()


def _check_file_kinds(collector: _Collector) -> None:
    declaration = collector.declaration
    for (kind, attribute), allowed in ALLOWED_TYPES.items():
        if kind is not declaration.kind:
            continue
        value = getattr(declaration, attribute)
        if value is None:
            continue
        entries = (value,) if isinstance(value, str) else value
        for entry in entries:
            if file_types.extension(entry) not in allowed:
                collector.error(
                    f"'{declaration.label.file_label(entry)}' does not produce any "
                    f"{declaration.rule_name} {attribute} files "
                    f"(expected {file_types.describe(allowed)})",
                    attribute,
                )


def _check_includes(collector: _Collector) -> None:
    declaration = collector.declaration
    for include in declaration.includes:
        if include.startswith("/"):
            collector.error(
                f"The path '{include}' is absolute, but only relative paths are allowed.",
                "includes",
            )
            continue
        normalized = declaration.path(include)
        if normalized == ".." or normalized.startswith("../"):
            collector.error(
                f"The include path '{include}' references a path outside of the execution root.",
                "includes",
            )


def _check_variables(collector: _Collector) -> None:
    declaration = collector.declaration
    for attribute in ("copts", "defines"):
        for value in getattr(declaration, attribute):
            for name in undefined_variables(value):
                collector.error(f"$({name}) not defined", attribute)


def _check_arc_overlap(collector: _Collector) -> None:
    declaration = collector.declaration
    non_arc = {declaration.path(s) for s in declaration.non_arc_srcs}
    for source in declaration.srcs:
        path = declaration.path(source)
        if path in non_arc:
            collector.error(f"File '{path}' is present in both srcs and non_arc_srcs which is forbidden.")


def _check_header_overlap(collector: _Collector) -> None:
    declaration = collector.declaration
    headers = {declaration.path(h) for h in declaration.hdrs}
    for source in declaration.srcs:
        path = declaration.path(source)
        if path in headers:
            collector.warning(f"File '{path}' is in both srcs and hdrs.")


def _check_module_attributes(collector: _Collector) -> None:
    declaration = collector.declaration
    if declaration.module_name is not None and declaration.module_map is not None:
        collector.error(
            "Specifying both module_name and module_map is invalid, please remove one of them."
        )


def _check_containers(collector: _Collector) -> None:
    declaration = collector.declaration
    for attribute, container_types in CONTAINER_TYPES.items():
        for path in declaration.resource_paths(attribute):
            if file_types.container_of(path, container_types) is None:
                collector.error(
                    f"File '{path}' is not in a directory of one of these type(s): "
                    f"{', '.join(container_types)}",
                    attribute,
                )


def _check_copts(collector: _Collector) -> None:
    for copt in collector.declaration.copts:
        if copt.startswith(MODULES_CACHE_PATH_FLAG):
            collector.warning(
                f"setting '{MODULES_CACHE_PATH_FLAG}' manually in copts is unsupported",
                "copts",
            )
