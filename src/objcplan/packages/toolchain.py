"""Toolchain registry for Apple builds.

This module defines the interface the planner uses to locate the compiler,
the archiver and the SDK, plus the flags a toolchain contributes on its own
(default warnings, per-mode flags, per-feature flags).

The default implementation, XcodeCrosstool, points at the wrapper scripts
shipped in ``tools/osx/crosstool/<platform>/`` and uses placeholder roots
(``__BAZEL_XCODE_SDKROOT__``, ``__BAZEL_XCODE_DEVELOPER_DIR__``) that the
execution engine substitutes at run time.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..build.platform_resolver import ApplePlatform
from ..config.apple_config import COMPILATION_MODES


class ToolchainError(Exception):
    """Raised when toolchain lookups fail."""

    pass


class Toolchain(ABC):
    """Interface for toolchains.

    Implementations must be immutable; one instance is shared by every
    concurrently planned target.
    """

    @abstractmethod
    def compiler_path(self, platform: ApplePlatform) -> str:
        """Get the compiler driver path for a platform.

        Returns:
            Execution-root relative path to the compiler
        """
        pass

    @abstractmethod
    def archiver_path(self, platform: ApplePlatform) -> str:
        """Get the static archiver (libtool) path for a platform.

        Returns:
            Execution-root relative path to the archiver
        """
        pass

    @abstractmethod
    def sdk_root(self, platform: ApplePlatform) -> str:
        """Get the SDK root passed to ``-isysroot`` and ``-syslibroot``."""
        pass

    @abstractmethod
    def developer_dir(self) -> str:
        """Get the Xcode developer directory."""
        pass

    @abstractmethod
    def default_warnings(self) -> List[str]:
        """Get the warning flags that start every compile command."""
        pass

    @abstractmethod
    def compilation_mode_flags(self, mode: str) -> List[str]:
        """Get extra flags for a compilation mode (``dbg``, ``fastbuild``, ``opt``)."""
        pass

    @abstractmethod
    def feature_flags(self, enabled_features: Iterable[str]) -> List[str]:
        """Get flags contributed by the enabled features, in feature order."""
        pass


DEFAULT_WARNINGS = [
    "-Wshorten-64-to-32",
    "-Wbool-conversion",
    "-Wconstant-conversion",
    "-Wduplicate-method-match",
    "-Wempty-body",
    "-Wenum-conversion",
    "-Wint-conversion",
    "-Wunreachable-code",
    "-Wmismatched-return-types",
    "-Wundeclared-selector",
    "-Wuninitialized",
    "-Wunused-function",
    "-Wunused-variable",
]


class XcodeCrosstool(Toolchain):
    """Xcode crosstool wrappers.

    Example:
        >>> crosstool = XcodeCrosstool()
        >>> crosstool.compiler_path(ApplePlatform.IOS_SIMULATOR)
        'tools/osx/crosstool/iossim/wrapped_clang'
    """

    SDK_ROOT = "__BAZEL_XCODE_SDKROOT__"
    DEVELOPER_DIR = "__BAZEL_XCODE_DEVELOPER_DIR__"

    def __init__(
        self,
        root: str = "tools/osx/crosstool",
        mode_flags: Optional[Mapping[str, Sequence[str]]] = None,
        features: Optional[Mapping[str, Sequence[str]]] = None,
        warnings: Optional[Sequence[str]] = None,
    ):
        """Initialize the crosstool.

        Args:
            root: Directory holding one subdirectory of wrappers per platform
            mode_flags: Extra flags per compilation mode
            features: Flags per feature name (``xcode_7.3``, ``contains_objc_sources``...)
            warnings: Replacement for the default warning flags

        Raises:
            ToolchainError: If mode_flags names an unknown compilation mode
        """
        unknown = sorted(set(mode_flags or {}) - set(COMPILATION_MODES))
        if unknown:
            raise ToolchainError(
                f"Unknown compilation mode(s) in mode_flags: {', '.join(unknown)}. "
                f"Expected one of: {', '.join(COMPILATION_MODES)}"
            )
        self.root = root.rstrip("/")
        self._mode_flags: Dict[str, tuple] = {k: tuple(v) for k, v in (mode_flags or {}).items()}
        self._features: Dict[str, tuple] = {k: tuple(v) for k, v in (features or {}).items()}
        self._warnings = tuple(DEFAULT_WARNINGS if warnings is None else warnings)

    def _tool(self, platform: ApplePlatform, name: str) -> str:
        return f"{self.root}/{platform.crosstool_dir}/{name}"

    def compiler_path(self, platform: ApplePlatform) -> str:
        return self._tool(platform, "wrapped_clang")

    def archiver_path(self, platform: ApplePlatform) -> str:
        return self._tool(platform, "libtool")

    def sdk_root(self, platform: ApplePlatform) -> str:
        return self.SDK_ROOT

    def developer_dir(self) -> str:
        return self.DEVELOPER_DIR

    def default_warnings(self) -> List[str]:
        return list(self._warnings)

    def compilation_mode_flags(self, mode: str) -> List[str]:
        return list(self._mode_flags.get(mode, ()))

    def feature_flags(self, enabled_features: Iterable[str]) -> List[str]:
        flags: List[str] = []
        for feature in enabled_features:
            flags.extend(self._features.get(feature, ()))
        return flags
