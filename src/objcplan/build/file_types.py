"""
File type tables for Objective-C library attributes.

This module centralizes the extension sets that decide which files an
attribute accepts, which files are compiled, and which headers end up in a
generated module map.
"""

import posixpath
from enum import Enum
from typing import FrozenSet, Optional


class Language(Enum):
    """Language mode inferred from a source file extension."""

    OBJC = "objc"
    OBJCPP = "objc++"
    C = "c"
    CPP = "c++"
    ASSEMBLY = "assembly"


HEADER_EXTENSIONS: FrozenSet[str] = frozenset(
    [".h", ".hh", ".hpp", ".hxx", ".ipp", ".inc", ".inl", ".H", ".h++", ".pch"]
)

# .inc/.inl are textual fragments and never part of a module's public surface
MODULE_MAP_HEADER_EXTENSIONS: FrozenSet[str] = frozenset(
    [".h", ".hh", ".hpp", ".hxx", ".ipp", ".H", ".h++"]
)

OBJECT_EXTENSIONS: FrozenSet[str] = frozenset([".o"])

LANGUAGE_BY_EXTENSION = {
    ".m": Language.OBJC,
    ".mm": Language.OBJCPP,
    ".c": Language.C,
    ".cc": Language.CPP,
    ".cpp": Language.CPP,
    ".cxx": Language.CPP,
    ".C": Language.CPP,
    ".s": Language.ASSEMBLY,
    ".S": Language.ASSEMBLY,
    ".asm": Language.ASSEMBLY,
}

COMPILABLE_EXTENSIONS: FrozenSet[str] = frozenset(LANGUAGE_BY_EXTENSION)

NON_ARC_SRCS_TYPE: FrozenSet[str] = frozenset([".m", ".mm"])

SRCS_TYPE: FrozenSet[str] = COMPILABLE_EXTENSIONS | HEADER_EXTENSIONS | OBJECT_EXTENSIONS

ASSET_CATALOG_CONTAINER_TYPE = ".xcassets"
DATAMODEL_CONTAINER_TYPES = (".xcdatamodel", ".xcdatamodeld")


def extension(path: str) -> str:
    """Return the extension of a path, keeping case (``.C`` is not ``.c``)."""
    return posixpath.splitext(path)[1]


def describe(types: FrozenSet[str]) -> str:
    """Render an extension set the way error messages print it."""
    return ", ".join(sorted(types, key=lambda ext: (ext.lower(), ext)))


def is_header(path: str) -> bool:
    return extension(path) in HEADER_EXTENSIONS


def is_module_map_header(path: str) -> bool:
    return extension(path) in MODULE_MAP_HEADER_EXTENSIONS


def is_compilable(path: str) -> bool:
    return extension(path) in COMPILABLE_EXTENSIONS


def is_object_file(path: str) -> bool:
    return extension(path) in OBJECT_EXTENSIONS


def language_for(path: str) -> Optional[Language]:
    """Infer the language mode for a source file.

    Args:
        path: Source file path

    Returns:
        Language, or None when the file is not compiled
    """
    return LANGUAGE_BY_EXTENSION.get(extension(path))


def uses_objc(path: str) -> bool:
    """Whether the file is an Objective-C or Objective-C++ source."""
    return language_for(path) in (Language.OBJC, Language.OBJCPP)


def container_of(path: str, container_types) -> Optional[str]:
    """Find the innermost enclosing directory with one of the given suffixes.

    Example:
        >>> container_of("lib/ac.xcassets/foo.png", (".xcassets",))
        'lib/ac.xcassets'
    """
    parts = path.split("/")
    for index in range(len(parts) - 1, 0, -1):
        if parts[index - 1].endswith(tuple(container_types)):
            return "/".join(parts[:index])
    return None
