"""
Action descriptions emitted by the planner.

Design:
    - Artifacts are (root, root-relative path) pairs; source files live in the
      empty root, outputs live under the configuration's bin or genfiles root
    - Actions are frozen dataclasses with tuple fields so they can be shared
      across threads and compared byte-for-byte between runs
    - Execution belongs to an external engine; ``to_dict`` is the hand-off form
"""

import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .dotd import ActionExecutionError, DotdParseError, parse_dotd


@dataclass(frozen=True, order=True)
class Artifact:
    """A file known to the planner."""

    root: str
    root_relative_path: str

    @staticmethod
    def source(path: str) -> "Artifact":
        return Artifact(root="", root_relative_path=path)

    @property
    def exec_path(self) -> str:
        if not self.root:
            return self.root_relative_path
        return posixpath.join(self.root, self.root_relative_path)

    @property
    def basename(self) -> str:
        return posixpath.basename(self.root_relative_path)

    def __str__(self) -> str:
        return self.exec_path


def _paths(artifacts) -> list:
    return [artifact.exec_path for artifact in artifacts]


@dataclass(frozen=True)
class CompileAction:
    """One compiler invocation for one source file."""

    owner: str
    source: Artifact
    arguments: Tuple[str, ...]
    inputs: Tuple[Artifact, ...]
    outputs: Tuple[Artifact, ...]
    environment: Tuple[Tuple[str, str], ...] = ()
    execution_requirements: Tuple[str, ...] = ()
    use_dotd_pruning: bool = False
    mnemonic: str = "ObjcCompile"

    @property
    def object_file(self) -> Artifact:
        return self.outputs[0]

    @property
    def dotd_file(self) -> Optional[Artifact]:
        return self.outputs[1] if len(self.outputs) > 1 else None

    @property
    def env(self) -> Dict[str, str]:
        return dict(self.environment)

    def discover_inputs(self, dotd_contents: Optional[str]) -> FrozenSet[Artifact]:
        """Narrow the declared inputs using the compiler's dependency file.

        Args:
            dotd_contents: Text of the ``.d`` file written by the compiler

        Returns:
            Declared inputs that the compiler actually read, or an empty set
            when dotd pruning is disabled for this action

        Raises:
            ActionExecutionError: If the dependency file cannot be parsed
        """
        if not self.use_dotd_pruning:
            return frozenset()

        try:
            dotd = parse_dotd(dotd_contents)
        except DotdParseError as e:
            raise ActionExecutionError(
                f"error while parsing .d file for {self.source.exec_path}: {e}",
                action=self,
            ) from e

        by_path = {artifact.exec_path: artifact for artifact in self.inputs}
        discovered = {self.source}
        for dependency in dotd.dependencies:
            artifact = by_path.get(posixpath.normpath(dependency))
            if artifact is not None:
                discovered.add(artifact)
        return frozenset(discovered)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mnemonic": self.mnemonic,
            "owner": self.owner,
            "arguments": list(self.arguments),
            "inputs": _paths(self.inputs),
            "outputs": _paths(self.outputs),
            "environment": dict(self.environment),
            "execution_requirements": list(self.execution_requirements),
        }


@dataclass(frozen=True)
class ArchiveAction:
    """A ``libtool -static`` invocation."""

    owner: str
    arguments: Tuple[str, ...]
    inputs: Tuple[Artifact, ...]
    output: Artifact
    environment: Tuple[Tuple[str, str], ...] = ()
    execution_requirements: Tuple[str, ...] = ()
    mnemonic: str = "ObjcLink"

    @property
    def outputs(self) -> Tuple[Artifact, ...]:
        return (self.output,)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mnemonic": self.mnemonic,
            "owner": self.owner,
            "arguments": list(self.arguments),
            "inputs": _paths(self.inputs),
            "outputs": [self.output.exec_path],
            "environment": dict(self.environment),
            "execution_requirements": list(self.execution_requirements),
        }


@dataclass(frozen=True)
class FileWriteAction:
    """Writes generated text (filelists, module maps) to an artifact."""

    owner: str
    output: Artifact
    content: str
    mnemonic: str = "FileWrite"
    inputs: Tuple[Artifact, ...] = field(default=())

    @property
    def outputs(self) -> Tuple[Artifact, ...]:
        return (self.output,)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mnemonic": self.mnemonic,
            "owner": self.owner,
            "inputs": _paths(self.inputs),
            "outputs": [self.output.exec_path],
            "content": self.content,
        }
