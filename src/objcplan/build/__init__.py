"""
Planning components for objcplan.

This package provides the action-graph planner for objc_library targets:
- Attribute model and validation
- Provider propagation across the dependency graph
- Platform resolution
- Module map, compile and archive planning
- Header discovery from compiler dependency files
"""

from .actions import ArchiveAction, Artifact, CompileAction, FileWriteAction
from .attributes import DeclarationFormatError, RuleKind, TargetDeclaration
from .dotd import ActionExecutionError, DotdParseError, parse_dotd
from .label import Label, LabelError
from .providers import Key, ProviderSet, compute_providers
from .validation import DeclarationError, RuleError, RuleWarning, ValidationResult, validate

__all__ = [
    "ActionExecutionError",
    "ArchiveAction",
    "Artifact",
    "CompileAction",
    "DeclarationError",
    "DeclarationFormatError",
    "DotdParseError",
    "FileWriteAction",
    "Key",
    "Label",
    "LabelError",
    "ProviderSet",
    "RuleError",
    "RuleKind",
    "RuleWarning",
    "TargetDeclaration",
    "ValidationResult",
    "compute_providers",
    "parse_dotd",
    "validate",
]
