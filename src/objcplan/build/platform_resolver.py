"""Platform Resolver.

This module maps an AppleConfiguration to the concrete facts the compile and
archive planners need: which Apple platform the CPU belongs to, tool paths,
SDK and framework roots, min-OS and architecture flags, and the effective
bitcode mode.

Design:
    - ``resolve`` is a pure function of (configuration, toolchain)
    - Tool locations come from the toolchain passed in, never from module state
    - Bitcode is a device-only concept: simulators resolve to ``none``
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

from ..config.apple_config import AppleConfiguration, ConfigurationError, parse_dotted_version

if TYPE_CHECKING:
    from ..packages.toolchain import Toolchain


class ApplePlatform(Enum):
    """Concrete Apple platform (OS family plus simulator or device)."""

    IOS_SIMULATOR = ("iPhoneSimulator", "ios", False, "iossim", "-mios-simulator-version-min=")
    IOS_DEVICE = ("iPhoneOS", "ios", True, "ios", "-miphoneos-version-min=")
    MACOS = ("MacOSX", "macos", True, "mac", "-mmacosx-version-min=")
    WATCHOS_SIMULATOR = ("WatchSimulator", "watchos", False, "watchsim", "-mwatchos-simulator-version-min=")
    WATCHOS_DEVICE = ("WatchOS", "watchos", True, "watchos", "-mwatchos-version-min=")
    TVOS_SIMULATOR = ("AppleTVSimulator", "tvos", False, "tvsim", "-mtvos-simulator-version-min=")
    TVOS_DEVICE = ("AppleTVOS", "tvos", True, "tvos", "-mtvos-version-min=")

    def __init__(self, name_in_plist, platform_type, is_device, crosstool_dir, min_os_flag_prefix):
        self.name_in_plist = name_in_plist
        self.platform_type = platform_type
        self.is_device = is_device
        self.crosstool_dir = crosstool_dir
        self.min_os_flag_prefix = min_os_flag_prefix

    @property
    def is_simulator(self) -> bool:
        return not self.is_device

    @property
    def supports_bitcode(self) -> bool:
        return self.is_device and self.platform_type != "macos"


# Simulator CPUs per platform type; anything else in KNOWN_CPUS is a device
SIMULATOR_CPUS = {
    "ios": ("i386", "x86_64"),
    "watchos": ("i386", "x86_64"),
    "tvos": ("x86_64",),
    "macos": (),
}

KNOWN_CPUS = {
    "ios": ("i386", "x86_64", "armv7", "armv7s", "arm64", "arm64e"),
    "watchos": ("i386", "x86_64", "armv7k", "arm64_32"),
    "tvos": ("x86_64", "arm64"),
    "macos": ("x86_64", "arm64", "arm64e"),
}

_SIMULATORS = {
    "ios": ApplePlatform.IOS_SIMULATOR,
    "watchos": ApplePlatform.WATCHOS_SIMULATOR,
    "tvos": ApplePlatform.TVOS_SIMULATOR,
}

_DEVICES = {
    "ios": ApplePlatform.IOS_DEVICE,
    "watchos": ApplePlatform.WATCHOS_DEVICE,
    "tvos": ApplePlatform.TVOS_DEVICE,
    "macos": ApplePlatform.MACOS,
}

REQUIRES_DARWIN = "requires-darwin"


def platform_for(platform_type: str, cpu: str) -> ApplePlatform:
    """Resolve the Apple platform for a (platform type, cpu) pair.

    Raises:
        ConfigurationError: If the cpu is not valid for the platform type
    """
    if platform_type not in KNOWN_CPUS:
        raise ConfigurationError(f"--apple_platform_type: unknown platform '{platform_type}'")
    if cpu not in KNOWN_CPUS[platform_type]:
        raise ConfigurationError(
            f"--{platform_type}_cpu: '{cpu}' is not a {platform_type} architecture, "
            f"expected one of {', '.join(KNOWN_CPUS[platform_type])}"
        )
    if cpu in SIMULATOR_CPUS[platform_type]:
        return _SIMULATORS[platform_type]
    return _DEVICES[platform_type]


def normalize_xcode_version(version: str) -> str:
    """Truncate or zero-fill a version to exactly ``major.minor``.

    Example:
        >>> normalize_xcode_version("7")
        '7.0'
        >>> normalize_xcode_version("7.3.1")
        '7.3'
    """
    components = parse_dotted_version(version, "xcode_version")
    major = components[0]
    minor = components[1] if len(components) > 1 else 0
    return f"{major}.{minor}"


@dataclass(frozen=True)
class PlatformFacts:
    """Resolved, immutable per-configuration facts."""

    configuration: AppleConfiguration
    platform: ApplePlatform
    cpu: str
    minimum_os_version: str
    sdk_version: str
    xcode_version: Optional[str]
    bitcode_mode: str
    compiler_path: str
    archiver_path: str
    sdk_root: str
    developer_dir: str
    framework_search_roots: Tuple[str, ...]
    environment: Tuple[Tuple[str, str], ...]
    execution_requirements: Tuple[str, ...] = (REQUIRES_DARWIN,)

    @property
    def is_simulator(self) -> bool:
        return self.platform.is_simulator

    @property
    def compilation_mode(self) -> str:
        return self.configuration.compilation_mode

    @property
    def target_cpu(self) -> str:
        return self.configuration.target_cpu

    @property
    def bin_root(self) -> str:
        return self.configuration.bin_root

    @property
    def genfiles_root(self) -> str:
        return self.configuration.genfiles_root

    @property
    def min_os_flag(self) -> str:
        return f"{self.platform.min_os_flag_prefix}{self.minimum_os_version}"

    @property
    def arch_flag(self) -> str:
        # Kept as a single argument; the wrapped compiler splits it
        return f"-arch {self.cpu}"

    @property
    def xcode_feature(self) -> Optional[str]:
        if self.xcode_version is None:
            return None
        return f"xcode_{self.xcode_version}"

    def base_features(self) -> Tuple[str, ...]:
        """Toolchain features enabled for every compile in this configuration."""
        features = ["default"]
        if self.xcode_feature:
            features.append(self.xcode_feature)
        return tuple(features)


def framework_roots(platform: ApplePlatform, sdk_root: str, developer_dir: str) -> Tuple[str, ...]:
    """System framework root, then the per-platform developer framework root."""
    roots = [
        f"{sdk_root}/Developer/Library/Frameworks",
        f"{developer_dir}/Platforms/{platform.name_in_plist}.platform/Developer/Library/Frameworks",
    ]
    return tuple(dict.fromkeys(roots))


def resolve(configuration: AppleConfiguration, toolchain: "Toolchain") -> PlatformFacts:
    """Resolve platform facts for a configuration.

    Args:
        configuration: Build configuration
        toolchain: Toolchain that locates tools and SDK directories

    Returns:
        PlatformFacts

    Raises:
        ConfigurationError: If the platform, cpu, or versions cannot be resolved
    """
    platform = platform_for(configuration.platform_type, configuration.cpu)

    sdk_version = configuration.effective_sdk_version
    minimum_os = configuration.effective_minimum_os
    parse_dotted_version(sdk_version, f"{configuration.platform_type}_sdk_version")
    parse_dotted_version(minimum_os, f"{configuration.platform_type}_minimum_os")

    xcode_version = None
    if configuration.xcode_version is not None:
        xcode_version = normalize_xcode_version(configuration.xcode_version)

    bitcode_mode = configuration.bitcode_mode
    if bitcode_mode != "none" and not platform.supports_bitcode:
        bitcode_mode = "none"

    sdk_root = toolchain.sdk_root(platform)
    developer_dir = toolchain.developer_dir()

    environment = [
        ("APPLE_SDK_PLATFORM", platform.name_in_plist),
        ("APPLE_SDK_VERSION_OVERRIDE", sdk_version),
    ]
    if configuration.xcode_version is not None:
        environment.append(("XCODE_VERSION_OVERRIDE", configuration.xcode_version))

    return PlatformFacts(
        configuration=configuration,
        platform=platform,
        cpu=configuration.cpu,
        minimum_os_version=minimum_os,
        sdk_version=sdk_version,
        xcode_version=xcode_version,
        bitcode_mode=bitcode_mode,
        compiler_path=toolchain.compiler_path(platform),
        archiver_path=toolchain.archiver_path(platform),
        sdk_root=sdk_root,
        developer_dir=developer_dir,
        framework_search_roots=framework_roots(platform, sdk_root, developer_dir),
        environment=tuple(environment),
    )
