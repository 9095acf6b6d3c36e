"""
Apple build configuration.

This module provides the immutable configuration value the planner consumes.
It stands in for the output of an option parser: every field corresponds to a
command-line option of the surrounding build tool, and ``from_options`` accepts
those options as strings.

Example:
    config = AppleConfiguration.from_options({
        "apple_platform_type": "ios",
        "cpu": "arm64",
        "apple_bitcode": "embedded",
        "compilation_mode": "opt",
    })
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple


class ConfigurationError(Exception):
    """Raised for unresolvable or contradictory configuration."""
    pass


PLATFORM_TYPES = ("ios", "macos", "watchos", "tvos")
COMPILATION_MODES = ("dbg", "fastbuild", "opt")
BITCODE_MODES = ("none", "embedded_markers", "embedded")

# SDK versions used when no explicit --<platform>_sdk_version is given
DEFAULT_SDK_VERSIONS = {
    "ios": "8.4",
    "macos": "10.10",
    "watchos": "2.0",
    "tvos": "9.0",
}

DEFAULT_CPUS = {
    "ios": "x86_64",
    "macos": "x86_64",
    "watchos": "i386",
    "tvos": "x86_64",
}

_BOOLEAN_STRINGS = {
    "1": True, "true": True, "yes": True, "on": True,
    "0": False, "false": False, "no": False, "off": False,
}


def parse_dotted_version(text: str, option: str) -> Tuple[int, ...]:
    """Parse a dotted numeric version (``9.10.11``).

    Args:
        text: Version string
        option: Option name used in error messages

    Returns:
        Tuple of integer components

    Raises:
        ConfigurationError: If the string is empty or has non-numeric parts
    """
    if text is None or not text.strip():
        raise ConfigurationError(f"--{option} was defined but is empty")
    parts = text.strip().split(".")
    try:
        return tuple(int(part) for part in parts)
    except ValueError as e:
        raise ConfigurationError(f"--{option}: '{text}' is not a dotted version") from e


@dataclass(frozen=True)
class AppleConfiguration:
    """Resolved options for one build configuration."""

    platform_type: str = "ios"
    cpu: str = "x86_64"
    compilation_mode: str = "fastbuild"
    minimum_os_version: Optional[str] = None
    sdk_version: Optional[str] = None
    xcode_version: Optional[str] = None
    bitcode_mode: str = "none"
    collect_code_coverage: bool = False
    use_llvm_coverage_map: bool = False
    enable_module_maps: bool = False
    use_dotd_pruning: bool = True
    disable_objc_library_resources: bool = False
    generate_dsym: bool = False
    debug_with_glibcxx: bool = False
    objccopts: Tuple[str, ...] = field(default=())
    output_root: str = "build-out"

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Check enum fields and version strings.

        Raises:
            ConfigurationError: If any field is out of range
        """
        if self.platform_type not in PLATFORM_TYPES:
            raise ConfigurationError(
                f"--apple_platform_type: unknown platform '{self.platform_type}', "
                f"expected one of {', '.join(PLATFORM_TYPES)}"
            )
        if self.compilation_mode not in COMPILATION_MODES:
            raise ConfigurationError(
                f"--compilation_mode: unknown mode '{self.compilation_mode}', "
                f"expected one of {', '.join(COMPILATION_MODES)}"
            )
        if self.bitcode_mode not in BITCODE_MODES:
            raise ConfigurationError(
                f"--apple_bitcode: unknown mode '{self.bitcode_mode}', "
                f"expected one of {', '.join(BITCODE_MODES)}"
            )
        if not self.cpu:
            raise ConfigurationError("--cpu was defined but is empty")
        prefix = self.platform_type
        if self.sdk_version is not None:
            parse_dotted_version(self.sdk_version, f"{prefix}_sdk_version")
        if self.minimum_os_version is not None:
            parse_dotted_version(self.minimum_os_version, f"{prefix}_minimum_os")
        if self.xcode_version is not None:
            parse_dotted_version(self.xcode_version, "xcode_version")

    @property
    def effective_sdk_version(self) -> str:
        return self.sdk_version or DEFAULT_SDK_VERSIONS[self.platform_type]

    @property
    def effective_minimum_os(self) -> str:
        return self.minimum_os_version or self.effective_sdk_version

    @property
    def target_cpu(self) -> str:
        """CPU string as exposed to ``$(TARGET_CPU)`` (``ios_i386``, ``darwin_x86_64``)."""
        prefix = "darwin" if self.platform_type == "macos" else self.platform_type
        return f"{prefix}_{self.cpu}"

    @property
    def output_directory_name(self) -> str:
        return f"{self.target_cpu}-{self.compilation_mode}"

    @property
    def bin_root(self) -> str:
        return f"{self.output_root}/{self.output_directory_name}/bin"

    @property
    def genfiles_root(self) -> str:
        return f"{self.output_root}/{self.output_directory_name}/genfiles"

    def with_options(self, **changes: Any) -> "AppleConfiguration":
        return replace(self, **changes)

    @staticmethod
    def from_options(options: Mapping[str, Any]) -> "AppleConfiguration":
        """Build a configuration from option-name/value pairs.

        Option names follow the command-line spelling without dashes
        (``apple_platform_type``, ``ios_sdk_version``, ``apple_bitcode``...).
        Platform-specific options for a platform other than the selected one
        are ignored.

        Args:
            options: Mapping of option name to string (or already typed) value

        Returns:
            AppleConfiguration

        Raises:
            ConfigurationError: If an option is unknown, empty, or malformed
        """
        values: Dict[str, Any] = {}
        platform_type = str(options.get("apple_platform_type", "")).strip()
        cpu = options.get("cpu")
        if cpu is not None:
            # --cpu=ios_i386 carries the platform as a prefix
            prefix, sep, arch = _string(cpu, "cpu").partition("_")
            if sep and prefix in PLATFORM_TYPES + ("darwin",) and arch:
                platform_type = platform_type or ("macos" if prefix == "darwin" else prefix)
                values["cpu"] = arch
            else:
                values["cpu"] = _string(cpu, "cpu")
        platform_type = platform_type or "ios"
        values["platform_type"] = platform_type

        for name, raw in options.items():
            if name in ("apple_platform_type", "cpu"):
                continue
            if name in ("compilation_mode", "output_root"):
                values[name] = _string(raw, name)
            elif name == "apple_bitcode":
                values["bitcode_mode"] = _string(raw, name)
            elif name == "xcode_version":
                values["xcode_version"] = _version(raw, name)
            elif name == "objccopt":
                values["objccopts"] = _list(raw)
            elif name in _BOOLEAN_OPTIONS:
                values[_BOOLEAN_OPTIONS[name]] = _boolean(raw, name)
            elif _is_platform_option(name):
                option_platform, _, suffix = name.partition("_")
                if option_platform == "darwin":
                    option_platform = "macos"
                if option_platform != platform_type:
                    # Empty values are rejected for every platform
                    if suffix == "cpu":
                        _string(raw, name)
                    else:
                        _version(raw, name)
                    continue
                if suffix == "sdk_version":
                    values["sdk_version"] = _version(raw, name)
                elif suffix == "minimum_os":
                    values["minimum_os_version"] = _version(raw, name)
                else:
                    values["cpu"] = _string(raw, name)
            else:
                raise ConfigurationError(f"unknown option --{name}")

        values.setdefault("cpu", DEFAULT_CPUS.get(platform_type, "x86_64"))
        return AppleConfiguration(**values)


_BOOLEAN_OPTIONS = {
    "collect_code_coverage": "collect_code_coverage",
    "experimental_use_llvm_covmap": "use_llvm_coverage_map",
    "experimental_objc_enable_module_maps": "enable_module_maps",
    "objc_use_dotd_pruning": "use_dotd_pruning",
    "incompatible_disable_objc_library_resources": "disable_objc_library_resources",
    "apple_generate_dsym": "generate_dsym",
    "objc_debug_with_GLIBCXX": "debug_with_glibcxx",
}

_PLATFORM_OPTION_SUFFIXES = ("sdk_version", "minimum_os", "cpu")


def _is_platform_option(name: str) -> bool:
    prefix, _, suffix = name.partition("_")
    return prefix in PLATFORM_TYPES + ("darwin",) and suffix in _PLATFORM_OPTION_SUFFIXES


def _string(raw: Any, name: str) -> str:
    value = str(raw).strip()
    if not value:
        raise ConfigurationError(f"--{name} was defined but is empty")
    return value


def _version(raw: Any, name: str) -> str:
    value = "" if raw is None else str(raw).strip()
    parse_dotted_version(value, name)
    return value


def _boolean(raw: Any, name: str) -> bool:
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return True
    value = str(raw).strip().lower()
    if value == "":
        return True
    if value not in _BOOLEAN_STRINGS:
        raise ConfigurationError(f"--{name}: expected a boolean, got '{raw}'")
    return _BOOLEAN_STRINGS[value]


def _list(raw: Any) -> Tuple[str, ...]:
    if isinstance(raw, (list, tuple)):
        return tuple(str(v) for v in raw)
    return tuple(str(raw).split())
