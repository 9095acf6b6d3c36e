"""Archive Creator.

This module plans the static library archive of a target and its "fully
linked" aggregate archive.

Design:
    - The archive's object list goes through a filelist artifact written by a
      FileWriteAction (``libtool -filelist``)
    - Objects keep source declaration order, precompiled objects follow
    - The fully linked archive is an independent plan over the own archive
      plus the transitive LIBRARY set
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .actions import ArchiveAction, Artifact, CompileAction, FileWriteAction
from .attributes import TargetDeclaration
from .platform_resolver import PlatformFacts
from .providers import Key, ProviderSet


class ArchiveError(Exception):
    """Raised when archive planning fails."""
    pass


@dataclass(frozen=True)
class ArchivePlan:
    """The archive of one target and the actions producing it."""

    archive: Artifact
    objects: Tuple[Artifact, ...]
    filelist: Artifact
    filelist_action: FileWriteAction
    action: ArchiveAction

    @property
    def actions(self) -> tuple:
        return (self.filelist_action, self.action)


def archive_artifact(declaration: TargetDeclaration, bin_root: str) -> Artifact:
    return Artifact(root=bin_root, root_relative_path=declaration.path(f"lib{declaration.label.name}.a"))


def filelist_artifact(declaration: TargetDeclaration, bin_root: str) -> Artifact:
    return Artifact(
        root=bin_root,
        root_relative_path=declaration.path(f"{declaration.label.name}-archive.objlist"),
    )


def fully_linked_artifact(declaration: TargetDeclaration, bin_root: str) -> Artifact:
    return Artifact(
        root=bin_root,
        root_relative_path=declaration.path(f"{declaration.label.name}_fully_linked.a"),
    )


class ArchiveCreator:
    """Plans libtool invocations for one configuration.

    This class handles:
    - The per-target archive with its filelist
    - The fully linked archive across the dependency closure
    """

    def __init__(self, facts: PlatformFacts):
        """Initialize archive creator.

        Args:
            facts: Resolved platform facts (archiver path, cpu, SDK root)
        """
        self.facts = facts

    def _platform_args(self) -> List[str]:
        return ["-arch_only", self.facts.cpu, "-syslibroot", self.facts.sdk_root]

    def plan_archive(
        self,
        declaration: TargetDeclaration,
        compile_actions: Sequence[CompileAction],
    ) -> Optional[ArchivePlan]:
        """Plan the static library archive of a target.

        Args:
            declaration: Target declaration
            compile_actions: The target's compile actions, in declaration order

        Returns:
            ArchivePlan, or None when there are no objects to archive
        """
        objects = [action.object_file for action in compile_actions]
        objects.extend(Artifact.source(path) for path in declaration.precompiled_objects())
        objects = list(dict.fromkeys(objects))
        if not objects:
            logging.debug(f"{declaration.label}: nothing to archive")
            return None

        bin_root = self.facts.bin_root
        owner = str(declaration.label)
        archive = archive_artifact(declaration, bin_root)
        filelist = filelist_artifact(declaration, bin_root)

        filelist_action = FileWriteAction(
            owner=owner,
            output=filelist,
            content="".join(f"{obj.exec_path}\n" for obj in objects),
            inputs=tuple(objects),
        )
        arguments = [self.facts.archiver_path, "-static", "-filelist", filelist.exec_path]
        arguments.extend(self._platform_args())
        arguments.extend(["-o", archive.exec_path])

        action = ArchiveAction(
            owner=owner,
            arguments=tuple(arguments),
            inputs=tuple(objects) + (filelist,),
            output=archive,
            environment=self.facts.environment,
            execution_requirements=self.facts.execution_requirements,
        )
        return ArchivePlan(
            archive=archive,
            objects=tuple(objects),
            filelist=filelist,
            filelist_action=filelist_action,
            action=action,
        )

    def plan_fully_linked_archive(
        self,
        declaration: TargetDeclaration,
        providers: ProviderSet,
        archive: Optional[Artifact] = None,
    ) -> ArchiveAction:
        """Plan the aggregate archive of the target and its dependency closure.

        Args:
            declaration: Target declaration
            providers: The target's merged provider set
            archive: The target's own archive, if any

        Returns:
            ArchiveAction whose inputs are the own archive followed by the
            transitive LIBRARY set, each once

        Raises:
            ArchiveError: If there is nothing to link
        """
        libraries = [archive] if archive is not None else []
        libraries.extend(providers.get(Key.LIBRARY))
        libraries = list(dict.fromkeys(libraries))
        if not libraries:
            raise ArchiveError(f"{declaration.label}: no archives to link")

        output = fully_linked_artifact(declaration, self.facts.bin_root)
        arguments = [self.facts.archiver_path, "-static"]
        arguments.extend(self._platform_args())
        arguments.extend(["-o", output.exec_path])
        arguments.extend(library.exec_path for library in libraries)

        return ArchiveAction(
            owner=str(declaration.label),
            arguments=tuple(arguments),
            inputs=tuple(libraries),
            output=output,
            environment=self.facts.environment,
            execution_requirements=self.facts.execution_requirements,
            mnemonic="ObjcLinkFullyLinked",
        )
