"""Provider Propagation Engine.

This module computes, for one target, the transitively merged mapping from
provider keys to ordered value sets.

Design:
    - Pure bottom-up fold: own contribution first, then every direct
      dependency's already-merged set in declaration order
    - Set semantics with first-seen order; exact duplicates collapse
    - Archives are routed by rule kind so this rule family's LIBRARY entries
      never mix with cc_library (CC_LIBRARY) or objc_import archives
    - ProviderSet values are tuples behind a read-only mapping

File-valued keys hold Artifacts. String-valued keys hold:
    INCLUDE / INCLUDE_SYSTEM: workspace-relative directories
    IQUOTE: bin-root relative directories
    DEFINE: ``KEY`` or ``KEY=VALUE``
    COPT: one tuple per contributing target (its copts, unsplit)
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from . import file_types
from .actions import Artifact
from .attributes import RuleKind, TargetDeclaration


class Key(Enum):
    """Provider keys."""

    HEADER = "header"
    LIBRARY = "library"
    CC_LIBRARY = "cc_library"
    IMPORTED_LIBRARY = "imported_library"
    SDK_FRAMEWORK = "sdk_framework"
    WEAK_SDK_FRAMEWORK = "weak_sdk_framework"
    SDK_DYLIB = "sdk_dylib"
    ASSET_CATALOG = "asset_catalog"
    XCASSETS_DIR = "xcassets_dir"
    XCDATAMODEL = "xcdatamodel"
    STORYBOARD = "storyboard"
    STRINGS = "strings"
    XIB = "xib"
    STRUCTURED_RESOURCE = "structured_resource"
    GENERAL_RESOURCE_FILE = "general_resource_file"
    INCLUDE = "include"
    INCLUDE_SYSTEM = "include_system"
    IQUOTE = "iquote"
    DEFINE = "define"
    COPT = "copt"
    MODULE_MAP = "module_map"
    FLAG = "flag"


class Flag:
    """Values carried under Key.FLAG."""

    USES_OBJC_SOURCES = "uses_objc_sources"


# Where a target's own archive goes, by provenance. Every RuleKind is listed.
ARCHIVE_KEY_BY_KIND = {
    RuleKind.OBJC_LIBRARY: Key.LIBRARY,
    RuleKind.CC_LIBRARY: Key.CC_LIBRARY,
    RuleKind.OBJC_IMPORT: Key.IMPORTED_LIBRARY,
}

RESOURCE_KEYS = {
    "asset_catalogs": Key.ASSET_CATALOG,
    "datamodels": Key.XCDATAMODEL,
    "storyboards": Key.STORYBOARD,
    "strings": Key.STRINGS,
    "xibs": Key.XIB,
    "structured_resources": Key.STRUCTURED_RESOURCE,
    "resources": Key.GENERAL_RESOURCE_FILE,
}


class ProviderSet:
    """Immutable mapping from Key to an ordered tuple of values."""

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping[Key, Iterable[Any]]] = None):
        frozen = {key: tuple(items) for key, items in (values or {}).items() if items}
        object.__setattr__(self, "_values", MappingProxyType(frozen))

    def __setattr__(self, name, value):
        raise AttributeError("ProviderSet is immutable")

    def get(self, key: Key) -> Tuple[Any, ...]:
        return self._values.get(key, ())

    def __getitem__(self, key: Key) -> Tuple[Any, ...]:
        return self.get(key)

    def __contains__(self, key: Key) -> bool:
        return key in self._values

    def keys(self):
        return self._values.keys()

    def has_flag(self, flag: str) -> bool:
        return flag in self.get(Key.FLAG)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ProviderSet):
            return NotImplemented
        return dict(self._values) == dict(other._values)

    def __hash__(self) -> int:
        return hash(tuple(sorted((key.value, items) for key, items in self._values.items())))

    def __repr__(self) -> str:
        keys = ", ".join(key.name for key in self._values)
        return f"ProviderSet({keys})"

    def to_dict(self) -> Dict[str, list]:
        """JSON-friendly form; artifacts render as exec paths."""
        result: Dict[str, list] = {}
        for key in Key:
            values = self.get(key)
            if not values:
                continue
            rendered = []
            for value in values:
                if isinstance(value, Artifact):
                    rendered.append(value.exec_path)
                elif isinstance(value, tuple):
                    rendered.append(list(value))
                else:
                    rendered.append(value)
            result[key.name] = rendered
        return result


EMPTY = ProviderSet()


class ProviderBuilder:
    """Ordered, deduplicating accumulator used while folding one target."""

    def __init__(self):
        self._values: Dict[Key, Dict[Any, None]] = {}

    def add(self, key: Key, value: Any) -> "ProviderBuilder":
        self._values.setdefault(key, {}).setdefault(value, None)
        return self

    def add_all(self, key: Key, values: Iterable[Any]) -> "ProviderBuilder":
        for value in values:
            self.add(key, value)
        return self

    def add_transitive(self, providers: ProviderSet) -> "ProviderBuilder":
        for key in Key:
            self.add_all(key, providers.get(key))
        return self

    def build(self) -> ProviderSet:
        return ProviderSet({key: list(values) for key, values in self._values.items()})


def compute_providers(
    declaration: TargetDeclaration,
    dependencies: Sequence[ProviderSet],
    archive: Optional[Artifact] = None,
    module_map: Optional[Artifact] = None,
) -> ProviderSet:
    """Fold a target's own contribution with its dependencies' provider sets.

    Args:
        declaration: Validated target declaration
        dependencies: Merged provider sets of the direct dependencies, in
            dependency declaration order
        archive: The target's own compiled archive, if it produces one
        module_map: Generated module map, if module maps are enabled

    Returns:
        ProviderSet for the target
    """
    builder = ProviderBuilder()

    if declaration.kind is RuleKind.OBJC_LIBRARY:
        _add_objc_contribution(builder, declaration, module_map)
    elif declaration.kind is RuleKind.CC_LIBRARY:
        _add_cc_contribution(builder, declaration)
    elif declaration.kind is RuleKind.OBJC_IMPORT:
        _add_import_contribution(builder, declaration)
    else:
        raise AssertionError(f"unhandled rule kind {declaration.kind}")

    _add_common_contribution(builder, declaration)
    if archive is not None:
        builder.add(ARCHIVE_KEY_BY_KIND[declaration.kind], archive)

    for providers in dependencies:
        builder.add_transitive(providers)
    return builder.build()


def _add_common_contribution(builder: ProviderBuilder, declaration: TargetDeclaration) -> None:
    builder.add_all(Key.SDK_FRAMEWORK, declaration.sdk_frameworks)
    builder.add_all(Key.WEAK_SDK_FRAMEWORK, declaration.weak_sdk_frameworks)
    builder.add_all(Key.SDK_DYLIB, declaration.sdk_dylibs)
    builder.add_all(Key.DEFINE, declaration.defines)


def _add_objc_contribution(
    builder: ProviderBuilder,
    declaration: TargetDeclaration,
    module_map: Optional[Artifact],
) -> None:
    builder.add_all(Key.HEADER, (Artifact.source(p) for p in declaration.public_headers()))
    builder.add_all(Key.HEADER, (Artifact.source(p) for p in declaration.textual_headers()))
    builder.add_all(Key.INCLUDE, (declaration.path(i) for i in declaration.includes))
    if declaration.copts:
        builder.add(Key.COPT, tuple(declaration.copts))

    custom_map = declaration.module_map_path()
    if custom_map is not None:
        builder.add(Key.MODULE_MAP, Artifact.source(custom_map))
    elif module_map is not None:
        builder.add(Key.MODULE_MAP, module_map)

    for attribute, key in RESOURCE_KEYS.items():
        builder.add_all(key, (Artifact.source(p) for p in declaration.resource_paths(attribute)))
    for path in declaration.resource_paths("asset_catalogs"):
        container = file_types.container_of(path, (file_types.ASSET_CATALOG_CONTAINER_TYPE,))
        if container is not None:
            builder.add(Key.XCASSETS_DIR, container)

    if declaration.has_objc_sources():
        builder.add(Key.FLAG, Flag.USES_OBJC_SOURCES)


def _add_cc_contribution(builder: ProviderBuilder, declaration: TargetDeclaration) -> None:
    builder.add_all(Key.HEADER, (Artifact.source(p) for p in declaration.public_headers()))
    builder.add_all(Key.HEADER, (Artifact.source(p) for p in declaration.textual_headers()))
    builder.add_all(Key.INCLUDE_SYSTEM, (declaration.path(i) for i in declaration.includes))
    if declaration.hdrs:
        builder.add(Key.IQUOTE, declaration.path(f"_virtual_includes/{declaration.label.name}"))


def _add_import_contribution(builder: ProviderBuilder, declaration: TargetDeclaration) -> None:
    builder.add_all(Key.HEADER, (Artifact.source(p) for p in declaration.public_headers()))
    builder.add_all(Key.INCLUDE, (declaration.path(i) for i in declaration.includes))
    builder.add_all(
        Key.IMPORTED_LIBRARY, (Artifact.source(declaration.path(a)) for a in declaration.archives)
    )
