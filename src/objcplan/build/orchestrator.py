"""
Analysis orchestration for objcplan workspaces.

This module evaluates the dependency DAG of target declarations bottom-up and
runs, for every target, the full planning pipeline:
- Validation (errors abort the target, warnings are recorded)
- Provider propagation over the direct dependencies' merged sets
- Module map generation
- Compile planning
- Archive and fully linked archive planning

Independent subtrees are analyzed in parallel on a thread pool. Every step is
a pure function of (declaration, dependency results, platform facts), so
sequential and parallel runs produce identical actions.
"""

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from graphlib import CycleError, TopologicalSorter
from typing import Dict, Iterable, List, Optional, Tuple

import psutil

from ..config.apple_config import AppleConfiguration
from ..packages.toolchain import Toolchain, XcodeCrosstool
from .actions import ArchiveAction, CompileAction, FileWriteAction
from .archive_creator import ArchiveCreator, ArchivePlan, archive_artifact
from .attributes import RuleKind, TargetDeclaration
from .compiler import CompilationPlanner
from .label import Label, LabelError
from .module_map import ModuleMap, module_map_action
from .module_map import generate as generate_module_map
from .platform_resolver import PlatformFacts, resolve
from .providers import Key, ProviderSet, compute_providers
from .validation import RuleWarning, ValidationResult, check_resources_allowed, validate


class DependencyResolutionError(Exception):
    """Raised when a dependency is missing, cyclic, or failed its own analysis."""
    pass


@dataclass(frozen=True)
class TargetAnalysis:
    """Everything planned for one target in one configuration."""

    label: Label
    declaration: TargetDeclaration
    validation: ValidationResult
    providers: ProviderSet
    compile_actions: Tuple[CompileAction, ...] = ()
    module_map: Optional[ModuleMap] = None
    module_map_action: Optional[FileWriteAction] = None
    archive: Optional[ArchivePlan] = None
    fully_linked_archive: Optional[ArchiveAction] = None

    @property
    def warnings(self) -> Tuple[RuleWarning, ...]:
        return self.validation.warnings

    def actions(self) -> list:
        """All actions in a stable order: module map, compiles, archive, fully linked."""
        actions: list = []
        if self.module_map_action is not None:
            actions.append(self.module_map_action)
        actions.extend(self.compile_actions)
        if self.archive is not None:
            actions.extend(self.archive.actions)
        if self.fully_linked_archive is not None:
            actions.append(self.fully_linked_archive)
        return actions

    def to_dict(self) -> dict:
        return {
            "label": str(self.label),
            "kind": self.declaration.rule_name,
            "warnings": [str(warning) for warning in self.warnings],
            "actions": [action.to_dict() for action in self.actions()],
        }


@dataclass
class _Evaluation:
    """Bookkeeping for one orchestrated run."""

    graph: Dict[Label, List[Label]] = field(default_factory=dict)
    failures: Dict[Label, Exception] = field(default_factory=dict)


def default_worker_count() -> int:
    """Physical core count, falling back to logical cores."""
    return psutil.cpu_count(logical=False) or psutil.cpu_count() or 1


class AnalysisOrchestrator:
    """
    Orchestrates analysis of target declarations.

    Example usage:
        orchestrator = AnalysisOrchestrator(declarations)
        analysis = orchestrator.analyze("//objc:lib", config)
        for action in analysis.actions():
            print(action.to_dict())
    """

    def __init__(
        self,
        declarations: Iterable[TargetDeclaration],
        toolchain: Optional[Toolchain] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            declarations: Every target declaration of the workspace
            toolchain: Toolchain registry (defaults to XcodeCrosstool)
            max_workers: Thread pool size (defaults to the physical core count)

        Raises:
            DependencyResolutionError: If two declarations share a label
        """
        self.toolchain = toolchain or XcodeCrosstool()
        self.max_workers = max_workers or default_worker_count()
        self.planner = CompilationPlanner(self.toolchain)

        self._declarations: Dict[Label, TargetDeclaration] = {}
        for declaration in declarations:
            if declaration.label in self._declarations:
                raise DependencyResolutionError(f"target '{declaration.label}' is declared more than once")
            self._declarations[declaration.label] = declaration

        self._cache: Dict[Tuple[Label, AppleConfiguration], TargetAnalysis] = {}
        self._facts: Dict[AppleConfiguration, PlatformFacts] = {}
        self._lock = threading.Lock()

    @property
    def labels(self) -> List[Label]:
        return list(self._declarations)

    def facts_for(self, configuration: AppleConfiguration) -> PlatformFacts:
        """Resolve (and memoize) platform facts for a configuration.

        Raises:
            ConfigurationError: If the configuration cannot be resolved
        """
        with self._lock:
            facts = self._facts.get(configuration)
        if facts is None:
            facts = resolve(configuration, self.toolchain)
            with self._lock:
                self._facts.setdefault(configuration, facts)
        return facts

    def analyze(self, label, configuration: AppleConfiguration) -> TargetAnalysis:
        """
        Analyze one target and, first, its dependency closure.

        Args:
            label: Target label (``Label`` or ``//pkg:name`` string)
            configuration: Build configuration

        Returns:
            TargetAnalysis for the target

        Raises:
            DeclarationError: If the target itself fails validation
            DependencyResolutionError: If a dependency is missing, cyclic, or failed
            ConfigurationError: If the configuration cannot be resolved
        """
        target = self._resolve_label(label)
        results = self._evaluate([target], configuration)
        return results[target]

    def analyze_all(self, configuration: AppleConfiguration) -> List[TargetAnalysis]:
        """
        Analyze every declared target.

        Returns:
            TargetAnalysis per target, in declaration order

        Raises:
            The first failure in declaration order, as in ``analyze``
        """
        labels = list(self._declarations)
        results = self._evaluate(labels, configuration)
        return [results[label] for label in labels]

    def _resolve_label(self, label) -> Label:
        if isinstance(label, Label):
            target = label
        else:
            try:
                target = Label.parse(str(label))
            except LabelError as e:
                raise DependencyResolutionError(str(e)) from e
        if target not in self._declarations:
            raise DependencyResolutionError(f"no such target '{target}'")
        return target

    def _cached(self, label: Label, configuration: AppleConfiguration) -> Optional[TargetAnalysis]:
        with self._lock:
            return self._cache.get((label, configuration))

    def _build_graph(self, roots: List[Label], configuration: AppleConfiguration) -> _Evaluation:
        evaluation = _Evaluation()
        stack = list(reversed(roots))
        while stack:
            label = stack.pop()
            if label in evaluation.graph or self._cached(label, configuration) is not None:
                continue
            declaration = self._declarations[label]
            dependencies = []
            for dependency in declaration.deps:
                try:
                    dependency_label = Label.parse(dependency, relative_to=label)
                except LabelError as e:
                    raise DependencyResolutionError(
                        f"in deps attribute of {declaration.rule_name} rule {label}: {e}"
                    ) from e
                if dependency_label not in self._declarations:
                    raise DependencyResolutionError(
                        f"in deps attribute of {declaration.rule_name} rule {label}: "
                        f"rule '{dependency_label}' does not exist"
                    )
                dependencies.append(dependency_label)
            evaluation.graph[label] = [
                d for d in dict.fromkeys(dependencies) if self._cached(d, configuration) is None
            ]
            stack.extend(reversed(dependencies))
        return evaluation

    def _evaluate(self, roots: List[Label], configuration: AppleConfiguration) -> Dict[Label, TargetAnalysis]:
        start_time = time.time()
        facts = self.facts_for(configuration)
        evaluation = self._build_graph(roots, configuration)

        sorter = TopologicalSorter(evaluation.graph)
        try:
            sorter.prepare()
        except CycleError as e:
            cycle = " -> ".join(str(label) for label in e.args[1])
            raise DependencyResolutionError(f"cycle in dependency graph: {cycle}") from e

        if evaluation.graph:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                pending: Dict[Future, Label] = {}
                while True:
                    for label in sorter.get_ready():
                        future = executor.submit(self._analyze_target, label, configuration, facts)
                        pending[future] = label
                    if not pending:
                        break
                    done, _ = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        label = pending.pop(future)
                        error = future.exception()
                        if error is not None:
                            evaluation.failures[label] = error
                        else:
                            sorter.done(label)

            logging.info(
                f"Analyzed {len(evaluation.graph) - len(evaluation.failures)} targets "
                f"in {time.time() - start_time:.2f}s"
            )

        results: Dict[Label, TargetAnalysis] = {}
        for root in roots:
            analysis = self._cached(root, configuration)
            if analysis is None:
                raise self._failure_for(root, configuration, evaluation)
            results[root] = analysis
        return results

    def _failure_for(self, label: Label, configuration: AppleConfiguration, evaluation: _Evaluation) -> Exception:
        """The error explaining why a target has no analysis."""
        if label in evaluation.failures:
            return evaluation.failures[label]
        declaration = self._declarations[label]
        for dependency in evaluation.graph.get(label, []):
            if self._cached(dependency, configuration) is None:
                cause = self._failure_for(dependency, configuration, evaluation)
                error = DependencyResolutionError(
                    f"in deps attribute of {declaration.rule_name} rule {label}: "
                    f"target '{dependency}' failed to analyze"
                )
                error.__cause__ = cause
                return error
        return DependencyResolutionError(f"target '{label}' was not analyzed")

    def _analyze_target(
        self,
        label: Label,
        configuration: AppleConfiguration,
        facts: PlatformFacts,
    ) -> TargetAnalysis:
        declaration = self._declarations[label]

        validation = validate(declaration).merged(
            check_resources_allowed(declaration, configuration.disable_objc_library_resources)
        )
        validation.raise_for_errors(str(label))

        dependency_providers = []
        for dependency in dict.fromkeys(declaration.dependency_labels()):
            analysis = self._cached(dependency, configuration)
            if analysis is None:
                raise DependencyResolutionError(
                    f"in deps attribute of {declaration.rule_name} rule {label}: "
                    f"target '{dependency}' has no analysis"
                )
            dependency_providers.append(analysis.providers)

        module_map = None
        if (
            declaration.kind is RuleKind.OBJC_LIBRARY
            and configuration.enable_module_maps
            and declaration.module_map is None
        ):
            module_map = generate_module_map(declaration, facts.genfiles_root)

        archive = None
        if declaration.kind is not RuleKind.OBJC_IMPORT and declaration.compiles_anything():
            archive = archive_artifact(declaration, facts.bin_root)

        providers = compute_providers(
            declaration,
            dependency_providers,
            archive=archive,
            module_map=module_map.artifact if module_map else None,
        )

        compile_actions = self.planner.plan(declaration, providers, facts)

        archive_plan = None
        fully_linked = None
        if declaration.kind is RuleKind.OBJC_LIBRARY:
            creator = ArchiveCreator(facts)
            archive_plan = creator.plan_archive(declaration, compile_actions)
            if providers.get(Key.LIBRARY):
                fully_linked = creator.plan_fully_linked_archive(
                    declaration, providers, archive_plan.archive if archive_plan else None
                )

        analysis = TargetAnalysis(
            label=label,
            declaration=declaration,
            validation=validation,
            providers=providers,
            compile_actions=tuple(compile_actions),
            module_map=module_map,
            module_map_action=module_map_action(module_map, str(label)) if module_map else None,
            archive=archive_plan,
            fully_linked_archive=fully_linked,
        )
        with self._lock:
            self._cache.setdefault((label, configuration), analysis)
        logging.debug(f"Analyzed {label}: {len(compile_actions)} compile actions")
        return analysis
