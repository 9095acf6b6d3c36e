"""Module Map Generator.

Derives a clang module map from a target's public header partition.

Only entries of ``hdrs`` with a module-map header extension are exported.
Other files listed in ``hdrs`` (``.m``, ``.mm``, ``.inc``...) are permitted
there but filtered out of the map. Headers listed in ``srcs`` are private to
the target and never appear in the map.
"""

import posixpath
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from . import file_types
from .actions import Artifact, FileWriteAction
from .attributes import TargetDeclaration

MODULE_MAP_FILENAME = "module.modulemap"

_INVALID_MODULE_CHARACTERS = re.compile(r"[^A-Za-z0-9]")


@dataclass(frozen=True)
class ModuleMap:
    """A generated module map."""

    name: str
    artifact: Artifact
    public_headers: Tuple[Artifact, ...]
    private_headers: Tuple[Artifact, ...] = ()

    @property
    def directory(self) -> str:
        return posixpath.dirname(self.artifact.exec_path)

    def render(self) -> str:
        """Render the module map text, header paths relative to the map's directory."""
        lines = [f'module "{self.name}" {{', "  export *"]
        for header in self.public_headers:
            lines.append(f'  header "{posixpath.relpath(header.exec_path, self.directory)}"')
        for header in self.private_headers:
            lines.append(f'  private header "{posixpath.relpath(header.exec_path, self.directory)}"')
        lines.append("}")
        return "\n".join(lines) + "\n"


def _escape(text: str) -> str:
    """Spell non-identifier characters as ``__<hex>__`` (``-`` -> ``__2d__``)."""
    return _INVALID_MODULE_CHARACTERS.sub(lambda m: f"__{ord(m.group(0)):x}__", text)


def default_module_name(declaration: TargetDeclaration) -> str:
    """Derive a module name unique per target.

    Package segments and the target name are joined with a single ``_``
    (``//x/y:z`` -> ``x_y_z``). Any other character outside ``[A-Za-z0-9]``,
    including ``_`` and a ``/`` inside the target name, is escaped as
    ``__<hex>__``, so distinct labels never share a name.
    """
    label = declaration.label
    segments = label.package.split("/") if label.package else []
    segments.append(label.name)
    return "_".join(_escape(segment) for segment in segments)


def module_name(declaration: TargetDeclaration) -> str:
    return declaration.module_name or default_module_name(declaration)


def module_map_artifact(declaration: TargetDeclaration, genfiles_root: str) -> Artifact:
    path = declaration.path(f"{declaration.label.name}.modulemaps/{MODULE_MAP_FILENAME}")
    return Artifact(root=genfiles_root, root_relative_path=path)


def generate(declaration: TargetDeclaration, genfiles_root: str) -> Optional[ModuleMap]:
    """Generate the module map for a target.

    Args:
        declaration: Validated objc_library declaration
        genfiles_root: Configuration's genfiles root

    Returns:
        ModuleMap, or None when the target declares its own ``module_map``
    """
    if declaration.module_map is not None:
        return None
    headers = tuple(
        Artifact.source(path)
        for path in declaration.public_headers()
        if file_types.is_module_map_header(path)
    )
    return ModuleMap(
        name=module_name(declaration),
        artifact=module_map_artifact(declaration, genfiles_root),
        public_headers=headers,
    )


def module_map_action(module_map: ModuleMap, owner: str) -> FileWriteAction:
    return FileWriteAction(
        owner=owner,
        output=module_map.artifact,
        content=module_map.render(),
        mnemonic="ModuleMap",
    )
