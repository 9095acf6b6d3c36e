"""Configuration modules for objcplan."""

from .apple_config import (
    BITCODE_MODES,
    COMPILATION_MODES,
    PLATFORM_TYPES,
    AppleConfiguration,
    ConfigurationError,
)
from .ini_parser import WorkspaceConfig, WorkspaceConfigError

__all__ = [
    "AppleConfiguration",
    "ConfigurationError",
    "PLATFORM_TYPES",
    "COMPILATION_MODES",
    "BITCODE_MODES",
    "WorkspaceConfig",
    "WorkspaceConfigError",
]
