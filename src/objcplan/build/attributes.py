"""
Attribute model for library targets.

A TargetDeclaration is the typed, immutable view of what a BUILD-style
declaration says about one target. File attributes hold paths relative to the
target's package, exactly as written by the user; the partition helpers
(``arc_sources``, ``public_headers``, ...) resolve them against the package.

Resource attributes are ``None`` when the user did not set them. An explicitly
empty list still counts as "set", which matters for the check that rejects
resource attributes when they are disabled by configuration.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from . import file_types
from .label import Label


class DeclarationFormatError(Exception):
    """Raised when a declaration dictionary has unknown or mistyped attributes."""
    pass


class RuleKind(Enum):
    """Provenance of a declaration.

    The set is closed: propagation code matches on every member explicitly.
    """

    OBJC_LIBRARY = "objc_library"
    CC_LIBRARY = "cc_library"
    OBJC_IMPORT = "objc_import"


RESOURCE_ATTRIBUTES = (
    "asset_catalogs",
    "datamodels",
    "storyboards",
    "strings",
    "xibs",
    "structured_resources",
    "resources",
)


@dataclass(frozen=True)
class TargetDeclaration:
    """Immutable declaration of one target."""

    label: Label
    kind: RuleKind = RuleKind.OBJC_LIBRARY
    srcs: Tuple[str, ...] = ()
    non_arc_srcs: Tuple[str, ...] = ()
    hdrs: Tuple[str, ...] = ()
    textual_hdrs: Tuple[str, ...] = ()
    includes: Tuple[str, ...] = ()
    defines: Tuple[str, ...] = ()
    copts: Tuple[str, ...] = ()
    sdk_frameworks: Tuple[str, ...] = ()
    weak_sdk_frameworks: Tuple[str, ...] = ()
    sdk_dylibs: Tuple[str, ...] = ()
    archives: Tuple[str, ...] = ()
    deps: Tuple[str, ...] = ()
    pch: Optional[str] = None
    module_name: Optional[str] = None
    module_map: Optional[str] = None
    asset_catalogs: Optional[Tuple[str, ...]] = None
    datamodels: Optional[Tuple[str, ...]] = None
    storyboards: Optional[Tuple[str, ...]] = None
    strings: Optional[Tuple[str, ...]] = None
    xibs: Optional[Tuple[str, ...]] = None
    structured_resources: Optional[Tuple[str, ...]] = None
    resources: Optional[Tuple[str, ...]] = None

    @staticmethod
    def create(label: str, kind: str = "objc_library", **attributes: Any) -> "TargetDeclaration":
        """Build a declaration from plain Python values.

        Args:
            label: Target label (``//pkg:name``)
            kind: Rule kind name (``objc_library``, ``cc_library``, ``objc_import``)
            **attributes: Attribute values; lists are frozen into tuples

        Returns:
            TargetDeclaration

        Raises:
            DeclarationFormatError: If an attribute is unknown or has the wrong shape
        """
        try:
            rule_kind = RuleKind(kind)
        except ValueError as e:
            raise DeclarationFormatError(f"unknown rule kind '{kind}'") from e

        known = {f.name: f for f in fields(TargetDeclaration)}
        values: Dict[str, Any] = {}
        for name, value in attributes.items():
            if name not in known or name in ("label", "kind"):
                raise DeclarationFormatError(f"{kind} rule {label}: no such attribute '{name}'")
            if name in ("pch", "module_name", "module_map"):
                if value is not None and not isinstance(value, str):
                    raise DeclarationFormatError(f"{kind} rule {label}: '{name}' must be a string")
                values[name] = value
            elif value is None:
                values[name] = None
            else:
                if isinstance(value, str) or not all(isinstance(v, str) for v in value):
                    raise DeclarationFormatError(f"{kind} rule {label}: '{name}' must be a list of strings")
                values[name] = tuple(value)
        return TargetDeclaration(label=Label.parse(label), kind=rule_kind, **values)

    @property
    def rule_name(self) -> str:
        return self.kind.value

    def path(self, relative: str) -> str:
        return self.label.package_relative(relative)

    def dependency_labels(self) -> List[Label]:
        return [Label.parse(dep, relative_to=self.label) for dep in self.deps]

    # Source partitions, in declaration order

    def arc_sources(self) -> List[str]:
        return [self.path(s) for s in self.srcs if file_types.is_compilable(s)]

    def non_arc_sources(self) -> List[str]:
        return [self.path(s) for s in self.non_arc_srcs if file_types.is_compilable(s)]

    def private_headers(self) -> List[str]:
        """Headers listed in srcs; visible to this target's compiles only."""
        return [self.path(s) for s in self.srcs if file_types.is_header(s)]

    def precompiled_objects(self) -> List[str]:
        return [self.path(s) for s in self.srcs + self.non_arc_srcs if file_types.is_object_file(s)]

    def public_headers(self) -> List[str]:
        """Everything in hdrs, including non-header files listed there."""
        return [self.path(h) for h in self.hdrs]

    def textual_headers(self) -> List[str]:
        return [self.path(h) for h in self.textual_hdrs]

    def has_objc_sources(self) -> bool:
        return any(file_types.uses_objc(s) for s in self.srcs + self.non_arc_srcs)

    def compiles_anything(self) -> bool:
        return bool(self.arc_sources() or self.non_arc_sources() or self.precompiled_objects())

    def pch_path(self) -> Optional[str]:
        return self.path(self.pch) if self.pch else None

    def module_map_path(self) -> Optional[str]:
        return self.path(self.module_map) if self.module_map else None

    def set_resource_attributes(self) -> Iterator[Tuple[str, Tuple[str, ...]]]:
        """Yield (attribute, values) for every resource attribute the user set."""
        for name in RESOURCE_ATTRIBUTES:
            value = getattr(self, name)
            if value is not None:
                yield name, value

    def resource_paths(self, attribute: str) -> List[str]:
        return [self.path(p) for p in (getattr(self, attribute) or ())]
