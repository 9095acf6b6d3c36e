"""Compilation Planner.

Derives one CompileAction per compiled source of an objc_library target.

Object files live under ``<bin>/<package>/_objs/<name>/<arc|non_arc>/``.
When several sources in one bucket share a file stem, every one of them is
placed in a numbered subdirectory (``arc/0/a.o``, ``arc/1/a.o``) assigned in
declaration order, so no two actions of a target write the same path.
"""

import logging
import posixpath
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .actions import Artifact, CompileAction
from .attributes import RuleKind, TargetDeclaration
from .flag_builder import CompileFlagBuilder
from .module_map import generate as generate_module_map
from .module_map import module_name as module_name_for
from .platform_resolver import PlatformFacts
from .providers import Key, ProviderSet


@dataclass(frozen=True)
class CompileSource:
    """A source file together with its ARC bucket."""

    path: str
    arc: bool

    @property
    def bucket(self) -> str:
        return "arc" if self.arc else "non_arc"

    @property
    def stem(self) -> str:
        return posixpath.splitext(posixpath.basename(self.path))[0]


def compile_sources(declaration: TargetDeclaration) -> List[CompileSource]:
    """Compiled sources in declaration order, ARC sources first; duplicates dropped."""
    sources = [CompileSource(path, True) for path in declaration.arc_sources()]
    sources += [CompileSource(path, False) for path in declaration.non_arc_sources()]
    return list(dict.fromkeys(sources))


def object_directory(declaration: TargetDeclaration) -> str:
    return declaration.path(f"_objs/{declaration.label.name}")


def object_paths(declaration: TargetDeclaration, bin_root: str) -> Dict[CompileSource, Artifact]:
    """Assign a unique object artifact to every compiled source.

    Args:
        declaration: Target declaration
        bin_root: Configuration's bin root

    Returns:
        Mapping from source to object artifact, in declaration order
    """
    sources = compile_sources(declaration)
    shared = Counter((source.bucket, source.stem) for source in sources)
    next_index: Counter = Counter()
    base = object_directory(declaration)

    objects: Dict[CompileSource, Artifact] = {}
    for source in sources:
        key = (source.bucket, source.stem)
        if shared[key] > 1:
            directory = f"{base}/{source.bucket}/{next_index[key]}"
            next_index[key] += 1
        else:
            directory = f"{base}/{source.bucket}"
        objects[source] = Artifact(root=bin_root, root_relative_path=f"{directory}/{source.stem}.o")
    return objects


def dotd_for(object_file: Artifact) -> Artifact:
    stem = posixpath.splitext(object_file.root_relative_path)[0]
    return Artifact(root=object_file.root, root_relative_path=f"{stem}.d")


def module_map_for(declaration: TargetDeclaration, facts: PlatformFacts) -> Tuple[Optional[Artifact], Optional[str]]:
    """Module map artifact and module name used by the target's compiles.

    Returns:
        (None, None) unless module maps are enabled for the configuration
    """
    if not facts.configuration.enable_module_maps:
        return None, None
    custom = declaration.module_map_path()
    if custom is not None:
        return Artifact.source(custom), None
    module_map = generate_module_map(declaration, facts.genfiles_root)
    return module_map.artifact, module_name_for(declaration)


class CompilationPlanner:
    """Plans compile actions for objc_library targets.

    cc_library and objc_import declarations belong to other rule families and
    yield no compile actions here.
    """

    def __init__(self, toolchain):
        """Initialize the planner.

        Args:
            toolchain: Toolchain passed to the flag builder
        """
        self.toolchain = toolchain

    def plan(
        self,
        declaration: TargetDeclaration,
        providers: ProviderSet,
        facts: PlatformFacts,
    ) -> List[CompileAction]:
        """Plan one compile action per source file.

        Args:
            declaration: Validated target declaration
            providers: The target's merged provider set
            facts: Resolved platform facts

        Returns:
            Compile actions in source declaration order (ARC sources first)
        """
        if declaration.kind is not RuleKind.OBJC_LIBRARY:
            return []

        module_map, module_name = module_map_for(declaration, facts)
        builder = CompileFlagBuilder(
            declaration,
            providers,
            facts,
            self.toolchain,
            module_map=module_map,
            module_name=module_name,
        )
        shared_inputs = self._shared_inputs(declaration, providers, module_map)
        owner = str(declaration.label)

        actions = []
        for source, object_file in object_paths(declaration, facts.bin_root).items():
            source_artifact = Artifact.source(source.path)
            dotd_file = dotd_for(object_file)
            arguments = [facts.compiler_path]
            arguments.extend(builder.arguments_for(source_artifact, source.arc, object_file, dotd_file))
            inputs = tuple(dict.fromkeys((source_artifact,) + shared_inputs))
            actions.append(
                CompileAction(
                    owner=owner,
                    source=source_artifact,
                    arguments=tuple(arguments),
                    inputs=inputs,
                    outputs=(object_file, dotd_file),
                    environment=facts.environment,
                    execution_requirements=facts.execution_requirements,
                    use_dotd_pruning=facts.configuration.use_dotd_pruning,
                )
            )

        logging.debug(f"Planned {len(actions)} compile actions for {owner}")
        return actions

    @staticmethod
    def _shared_inputs(
        declaration: TargetDeclaration,
        providers: ProviderSet,
        module_map: Optional[Artifact],
    ) -> Tuple[Artifact, ...]:
        inputs: List[Artifact] = [Artifact.source(p) for p in declaration.private_headers()]
        inputs.extend(providers.get(Key.HEADER))
        pch = declaration.pch_path()
        if pch:
            inputs.append(Artifact.source(pch))
        if module_map is not None:
            inputs.append(module_map)
        return tuple(dict.fromkeys(inputs))
