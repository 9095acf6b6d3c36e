"""objcplan - build action planner for Objective-C library targets."""

__version__ = "0.1.0"

from objcplan.build.orchestrator import (  # noqa: E402
    AnalysisOrchestrator,
    DependencyResolutionError,
    TargetAnalysis,
)
from objcplan.build.platform_resolver import PlatformFacts, resolve  # noqa: E402
from objcplan.config import AppleConfiguration, ConfigurationError, WorkspaceConfig  # noqa: E402
from objcplan.packages import Toolchain, XcodeCrosstool  # noqa: E402

__all__ = [
    "AnalysisOrchestrator",
    "AppleConfiguration",
    "ConfigurationError",
    "DependencyResolutionError",
    "PlatformFacts",
    "TargetAnalysis",
    "Toolchain",
    "WorkspaceConfig",
    "XcodeCrosstool",
    "__version__",
    "resolve",
]
