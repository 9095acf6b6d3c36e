"""
Workspace INI parser.

This module reads the workspace description consumed by the ``objcplan`` CLI:
build configurations and target declarations in one INI file.

Example workspace.ini:
    [workspace]
    default_config = ios_sim

    [config]
    xcode_version = 7.3.1

    [config:ios_sim]
    apple_platform_type = ios
    cpu = i386

    [target://objc:lib]
    kind = objc_library
    srcs = a.m b.m private.h
    hdrs = a.h
    defines = A=1 B
    deps = //base:base

Usage:
    workspace = WorkspaceConfig(Path("workspace.ini"))
    config = workspace.get_configuration("ios_sim")
    declarations = workspace.get_declarations()
"""

import configparser
import logging
from pathlib import Path
from typing import Dict, List, Optional

from ..build.attributes import DeclarationFormatError, TargetDeclaration
from ..build.label import LabelError
from .apple_config import AppleConfiguration, ConfigurationError


class WorkspaceConfigError(Exception):
    """Exception raised for workspace.ini errors."""

    pass


SCALAR_ATTRIBUTES = {"pch", "module_name", "module_map"}


class WorkspaceConfig:
    """
    Parser for workspace.ini files.

    Values of list attributes are split on whitespace and newlines. Keys keep
    their case. Interpolation is disabled so ``$(TARGET_CPU)`` survives as
    written.
    """

    def __init__(self, ini_path: Path):
        """
        Initialize the parser with a workspace.ini file.

        Args:
            ini_path: Path to the workspace.ini file

        Raises:
            WorkspaceConfigError: If the file doesn't exist or cannot be parsed
        """
        self.ini_path = ini_path

        if not ini_path.exists():
            raise WorkspaceConfigError(f"Workspace file not found: {ini_path}")

        self.config = configparser.ConfigParser(allow_no_value=True, interpolation=None)
        self.config.optionxform = str  # type: ignore[assignment]

        try:
            self.config.read(ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise WorkspaceConfigError(f"Failed to parse {ini_path}: {e}") from e

    def get_configuration_names(self) -> List[str]:
        """
        Get the names of all configurations.

        Example:
            For [config:ios_sim], [config:ios_device], returns ['ios_sim', 'ios_device']
        """
        return [
            section.split(":", 1)[1]
            for section in self.config.sections()
            if section.startswith("config:")
        ]

    def get_default_configuration(self) -> Optional[str]:
        """
        Get the default configuration name.

        Returns:
            ``default_config`` from [workspace], else the first configuration, else None
        """
        if "workspace" in self.config:
            default = (self.config["workspace"].get("default_config") or "").strip()
            if default:
                return default
        names = self.get_configuration_names()
        return names[0] if names else None

    def get_configuration(self, name: Optional[str] = None) -> AppleConfiguration:
        """
        Build the AppleConfiguration for a named [config:NAME] section.

        Values in a bare [config] section apply to every configuration.

        Args:
            name: Configuration name, or None for the default

        Returns:
            AppleConfiguration

        Raises:
            WorkspaceConfigError: If the configuration is missing or invalid
        """
        name = name or self.get_default_configuration()
        if name is None:
            raise WorkspaceConfigError(f"No configurations defined in {self.ini_path}")

        section = f"config:{name}"
        if section not in self.config:
            available = ", ".join(self.get_configuration_names())
            raise WorkspaceConfigError(
                f"Configuration '{name}' not found. "
                + f"Available configurations: {available or 'none'}"
            )

        options: Dict[str, str] = {}
        if "config" in self.config:
            options.update(self._section_items("config"))
        options.update(self._section_items(section))

        try:
            return AppleConfiguration.from_options(options)
        except ConfigurationError as e:
            raise WorkspaceConfigError(f"Configuration '{name}': {e}") from e

    def get_declarations(self) -> List[TargetDeclaration]:
        """
        Build a TargetDeclaration for every [target:...] section.

        Returns:
            Declarations in file order

        Raises:
            WorkspaceConfigError: If a section has unknown attributes or a bad label
        """
        declarations = []
        for section in self.config.sections():
            if not section.startswith("target:"):
                continue
            label = section.split(":", 1)[1]
            items = self._section_items(section)
            kind = (items.pop("kind", None) or "objc_library").strip()
            attributes: Dict[str, object] = {}
            for key, value in items.items():
                if key in SCALAR_ATTRIBUTES:
                    attributes[key] = value.strip() if value and value.strip() else None
                else:
                    attributes[key] = self._split_list(value)
            try:
                declarations.append(TargetDeclaration.create(label, kind, **attributes))
            except (DeclarationFormatError, LabelError) as e:
                raise WorkspaceConfigError(f"[{section}]: {e}") from e

        logging.debug(f"Loaded {len(declarations)} target declarations from {self.ini_path}")
        return declarations

    def _section_items(self, section: str) -> Dict[str, str]:
        # allow_no_value yields None for bare keys; keep them as empty strings
        return {
            key: (value if value is not None else "")
            for key, value in self.config.items(section, raw=True)
            if key not in self.config.defaults()
        }

    @staticmethod
    def _split_list(value: Optional[str]) -> List[str]:
        """Split a list value on whitespace and newlines, filtering empty strings."""
        if not value:
            return []
        return [item for item in value.split() if item]
