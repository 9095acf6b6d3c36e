"""Toolchain registry for objcplan."""

from .toolchain import DEFAULT_WARNINGS, Toolchain, ToolchainError, XcodeCrosstool

__all__ = [
    "DEFAULT_WARNINGS",
    "Toolchain",
    "ToolchainError",
    "XcodeCrosstool",
]
