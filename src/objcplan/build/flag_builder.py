"""Compilation Flag Builder.

This module assembles the ordered argument list of an Objective-C compile
command from the target declaration, its merged providers and the resolved
platform facts.

Design:
    - The order of flag groups is fixed; caching and downstream consumers
      depend on it
    - Flags shared by every source of a target are built once per target
    - Per-source flags (ARC, language, input, outputs) are appended last
    - copts and defines are make-variable expanded per configuration
"""

import posixpath
from typing import List, Optional

from . import file_types
from .actions import Artifact
from .attributes import TargetDeclaration
from .make_variables import expand, variables_for
from .platform_resolver import PlatformFacts
from .providers import Flag, Key, ProviderSet


class FlagBuilderError(Exception):
    """Raised when flag building operations fail."""
    pass


DEFAULT_COMPILER_FLAGS = ["-DOS_IOS", "-fno-autolink"]
MACOS_COMPILER_FLAGS = ["-DOS_MACOSX", "-fno-autolink"]

MODE_FLAGS = {
    "dbg": ["-O0", "-DDEBUG=1", "-fstack-protector", "-fstack-protector-all", "-g"],
    "fastbuild": ["-O0", "-DDEBUG=1"],
    "opt": ["-Os", "-DNDEBUG=1", "-Wno-unused-variable", "-Winit-self", "-Wno-extra", "-g0"],
}

GLIBCXX_DEBUG_FLAGS = ["-D_GLIBCXX_DEBUG", "-D_GLIBCXX_DEBUG_PEDANTIC", "-D_GLIBCPP_CONCEPT_CHECKS"]

SIMULATOR_FLAGS = ["-fexceptions", "-fasm-blocks", "-fobjc-abi-version=2", "-fobjc-legacy-dispatch"]

GCOV_COVERAGE_FLAGS = ["-fprofile-arcs", "-ftest-coverage"]
LLVM_COVERAGE_FLAGS = ["-fprofile-instr-generate", "-fcoverage-mapping"]

BITCODE_FLAGS = {
    "embedded": "-fembed-bitcode",
    "embedded_markers": "-fembed-bitcode-marker",
}

CPP_FLAGS = ["-stdlib=libc++", "-std=gnu++11"]

MODULES_FLAG = "-fmodules"
MODULES_CACHE_PATH_FLAG = "-fmodules-cache-path"
MODULE_CACHE_DIR = "_objc_module_cache"

CONTAINS_OBJC_SOURCES_FEATURE = "contains_objc_sources"


class CompileFlagBuilder:
    """Builds compile arguments for the sources of one target.

    Example:
        builder = CompileFlagBuilder(declaration, providers, facts, toolchain)
        args = builder.arguments_for(source, arc=True, object_file=obj, dotd_file=dotd)
    """

    def __init__(
        self,
        declaration: TargetDeclaration,
        providers: ProviderSet,
        facts: PlatformFacts,
        toolchain,
        module_map: Optional[Artifact] = None,
        module_name: Optional[str] = None,
    ):
        """Initialize flag builder.

        Args:
            declaration: Validated target declaration
            providers: Merged provider set of the target
            facts: Resolved platform facts
            toolchain: Toolchain contributing warnings, mode and feature flags
            module_map: Module map used for this target's compiles, if any
            module_name: Module name passed with ``-fmodule-name``
        """
        self.declaration = declaration
        self.providers = providers
        self.facts = facts
        self.toolchain = toolchain
        self.module_map = module_map
        self.module_name = module_name
        self._variables = variables_for(facts)
        self._common: Optional[List[str]] = None

    def enabled_features(self) -> List[str]:
        features = list(self.facts.base_features())
        if self.providers.has_flag(Flag.USES_OBJC_SOURCES):
            features.append(CONTAINS_OBJC_SOURCES_FEATURE)
        return features

    def common_flags(self) -> List[str]:
        """Flags shared by every source of the target, in contract order.

        Returns:
            A new list (callers may extend it)
        """
        if self._common is None:
            flags: List[str] = []
            flags.extend(self.toolchain.default_warnings())
            flags.extend(self._default_compiler_flags())
            flags.extend(self._mode_flags())
            if self.facts.is_simulator:
                flags.extend(SIMULATOR_FLAGS)
            flags.append(self.facts.min_os_flag)
            flags.append(self.facts.arch_flag)
            flags.extend(["-isysroot", self.facts.sdk_root])
            flags.extend(f"-F{root}" for root in self.facts.framework_search_roots)
            flags.extend(self._include_flags())
            flags.extend(self._pch_flags())
            flags.extend(self._module_map_flags())
            flags.extend(self._coverage_flags())
            flags.extend(self._bitcode_flags())
            flags.extend(self._define_flags())
            flags.extend(self._copts())
            self._common = flags
        return list(self._common)

    def arguments_for(
        self,
        source: Artifact,
        arc: bool,
        object_file: Artifact,
        dotd_file: Optional[Artifact],
    ) -> List[str]:
        """Full argument list (without the compiler path) for one source.

        Args:
            source: Source file artifact
            arc: Whether the source was declared in ``srcs`` (ARC) or ``non_arc_srcs``
            object_file: Object output
            dotd_file: Dependency file output, if emitted

        Returns:
            Ordered argument list
        """
        language = file_types.language_for(source.exec_path)
        if language is None:
            raise FlagBuilderError(f"{source.exec_path} is not a compilable source")

        flags = self.common_flags()
        if language in (file_types.Language.OBJC, file_types.Language.OBJCPP):
            flags.append("-fobjc-arc" if arc else "-fno-objc-arc")
        if language in (file_types.Language.CPP, file_types.Language.OBJCPP):
            flags.extend(CPP_FLAGS)
        flags.extend(["-c", source.exec_path])
        flags.extend(["-o", object_file.exec_path])
        if dotd_file is not None:
            flags.extend(["-MD", "-MF", dotd_file.exec_path])
        return flags

    def _default_compiler_flags(self) -> List[str]:
        if self.facts.platform.platform_type == "macos":
            flags = list(MACOS_COMPILER_FLAGS)
        else:
            flags = list(DEFAULT_COMPILER_FLAGS)
        flags.extend(self.toolchain.feature_flags(self.enabled_features()))
        return flags

    def _mode_flags(self) -> List[str]:
        configuration = self.facts.configuration
        mode = configuration.compilation_mode
        flags = list(MODE_FLAGS[mode])
        if mode == "opt" and configuration.generate_dsym:
            flags.remove("-g0")
        if mode == "dbg" and configuration.debug_with_glibcxx:
            flags.extend(GLIBCXX_DEBUG_FLAGS)
        flags.extend(self.toolchain.compilation_mode_flags(mode))
        return flags

    def _rooted(self, path: str) -> List[str]:
        return [
            path,
            posixpath.join(self.facts.genfiles_root, path),
            posixpath.join(self.facts.bin_root, path),
        ]

    def _include_flags(self) -> List[str]:
        flags: List[str] = []
        for include in self.providers.get(Key.INCLUDE):
            flags.extend(f"-I{path}" for path in self._rooted(include))
        for include in self.providers.get(Key.INCLUDE_SYSTEM):
            for path in self._rooted(include):
                flags.extend(["-isystem", path])
        for quote in self.providers.get(Key.IQUOTE):
            flags.extend(["-iquote", posixpath.join(self.facts.bin_root, quote)])
        flags.extend(["-iquote", "."])
        flags.extend(["-iquote", self.facts.genfiles_root])
        flags.extend(["-iquote", self.facts.bin_root])
        return flags

    def _pch_flags(self) -> List[str]:
        pch = self.declaration.pch_path()
        return ["-include", pch] if pch else []

    def _module_map_flags(self) -> List[str]:
        if self.module_map is None:
            return []
        flags = [
            "-iquote",
            posixpath.dirname(self.module_map.exec_path),
            "-fmodule-maps",
            f"-fmodule-map-file={self.module_map.exec_path}",
        ]
        if self.module_name:
            flags.append(f"-fmodule-name={self.module_name}")
        return flags

    def _coverage_flags(self) -> List[str]:
        configuration = self.facts.configuration
        if not configuration.collect_code_coverage:
            return []
        if configuration.use_llvm_coverage_map:
            return list(LLVM_COVERAGE_FLAGS)
        return list(GCOV_COVERAGE_FLAGS)

    def _bitcode_flags(self) -> List[str]:
        flag = BITCODE_FLAGS.get(self.facts.bitcode_mode)
        return [flag] if flag else []

    def _define_flags(self) -> List[str]:
        defines = dict.fromkeys(
            expand(define, self._variables) for define in self.providers.get(Key.DEFINE)
        )
        return [f"-D{define}" for define in defines]

    def _copts(self) -> List[str]:
        own = tuple(self.declaration.copts)
        dependency_copts = [
            copt
            for entry in self.providers.get(Key.COPT)
            if entry != own
            for copt in entry
        ]
        raw = list(self.facts.configuration.objccopts) + dependency_copts + list(own)
        copts = [
            expand(copt, self._variables)
            for copt in raw
            if not copt.startswith(MODULES_CACHE_PATH_FLAG)
        ]
        if MODULES_FLAG in copts:
            cache = posixpath.join(self.facts.genfiles_root, MODULE_CACHE_DIR)
            copts.append(f"{MODULES_CACHE_PATH_FLAG}={cache}")
        return copts
