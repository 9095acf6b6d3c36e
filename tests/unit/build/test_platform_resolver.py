"""
Unit tests for platform resolution.
"""

import pytest

from objcplan.build.platform_resolver import (
    ApplePlatform,
    normalize_xcode_version,
    platform_for,
    resolve,
)
from objcplan.config.apple_config import AppleConfiguration, ConfigurationError

SDK = "__BAZEL_XCODE_SDKROOT__"
DEVELOPER_DIR = "__BAZEL_XCODE_DEVELOPER_DIR__"


class TestPlatformFor:
    """Test suite for platform_for."""

    @pytest.mark.parametrize("platform_type,cpu,expected", [
        ("ios", "i386", ApplePlatform.IOS_SIMULATOR),
        ("ios", "x86_64", ApplePlatform.IOS_SIMULATOR),
        ("ios", "armv7", ApplePlatform.IOS_DEVICE),
        ("ios", "arm64", ApplePlatform.IOS_DEVICE),
        ("watchos", "i386", ApplePlatform.WATCHOS_SIMULATOR),
        ("watchos", "armv7k", ApplePlatform.WATCHOS_DEVICE),
        ("tvos", "x86_64", ApplePlatform.TVOS_SIMULATOR),
        ("tvos", "arm64", ApplePlatform.TVOS_DEVICE),
        ("macos", "x86_64", ApplePlatform.MACOS),
    ])
    def test_mapping(self, platform_type, cpu, expected):
        assert platform_for(platform_type, cpu) is expected

    def test_unknown_cpu(self):
        with pytest.raises(ConfigurationError, match="'sparc' is not a ios architecture"):
            platform_for("ios", "sparc")

    def test_cpu_of_other_platform(self):
        with pytest.raises(ConfigurationError):
            platform_for("tvos", "i386")

    def test_bitcode_support(self):
        assert ApplePlatform.IOS_DEVICE.supports_bitcode
        assert not ApplePlatform.IOS_SIMULATOR.supports_bitcode
        assert not ApplePlatform.MACOS.supports_bitcode


class TestNormalizeXcodeVersion:
    """Test suite for normalize_xcode_version."""

    @pytest.mark.parametrize("raw,expected", [("7", "7.0"), ("7.3", "7.3"), ("7.3.1", "7.3"), ("10.10.1", "10.10")])
    def test_normalize(self, raw, expected):
        assert normalize_xcode_version(raw) == expected

    def test_invalid(self):
        with pytest.raises(ConfigurationError):
            normalize_xcode_version("seven")


class TestResolve:
    """Test suite for resolve."""

    def test_simulator_facts(self, sim_config, crosstool):
        facts = resolve(sim_config, crosstool)
        assert facts.platform is ApplePlatform.IOS_SIMULATOR
        assert facts.is_simulator
        assert facts.compiler_path == "tools/osx/crosstool/iossim/wrapped_clang"
        assert facts.archiver_path == "tools/osx/crosstool/iossim/libtool"
        assert facts.sdk_root == SDK
        assert facts.min_os_flag == "-mios-simulator-version-min=8.4"
        assert facts.arch_flag == "-arch x86_64"
        assert facts.bin_root == "build-out/ios_x86_64-fastbuild/bin"
        assert facts.genfiles_root == "build-out/ios_x86_64-fastbuild/genfiles"
        assert facts.framework_search_roots == (
            f"{SDK}/Developer/Library/Frameworks",
            f"{DEVELOPER_DIR}/Platforms/iPhoneSimulator.platform/Developer/Library/Frameworks",
        )
        assert facts.execution_requirements == ("requires-darwin",)

    def test_device_facts(self, device_config, crosstool):
        facts = resolve(device_config.with_options(minimum_os_version="9.0"), crosstool)
        assert facts.platform is ApplePlatform.IOS_DEVICE
        assert not facts.is_simulator
        assert facts.compiler_path == "tools/osx/crosstool/ios/wrapped_clang"
        assert facts.min_os_flag == "-miphoneos-version-min=9.0"
        assert facts.framework_search_roots[1] == (
            f"{DEVELOPER_DIR}/Platforms/iPhoneOS.platform/Developer/Library/Frameworks"
        )

    def test_environment(self, crosstool):
        config = AppleConfiguration(platform_type="ios", cpu="i386", sdk_version="9.1", xcode_version="7.3.1")
        facts = resolve(config, crosstool)
        assert facts.environment == (
            ("APPLE_SDK_PLATFORM", "iPhoneSimulator"),
            ("APPLE_SDK_VERSION_OVERRIDE", "9.1"),
            ("XCODE_VERSION_OVERRIDE", "7.3.1"),
        )
        assert facts.xcode_version == "7.3"
        assert facts.base_features() == ("default", "xcode_7.3")

    def test_no_xcode_version(self, sim_config, crosstool):
        facts = resolve(sim_config, crosstool)
        assert facts.xcode_version is None
        assert facts.base_features() == ("default",)
        assert [name for name, _ in facts.environment] == ["APPLE_SDK_PLATFORM", "APPLE_SDK_VERSION_OVERRIDE"]

    def test_bitcode_on_device(self, device_config, crosstool):
        facts = resolve(device_config.with_options(bitcode_mode="embedded"), crosstool)
        assert facts.bitcode_mode == "embedded"

    def test_bitcode_ignored_on_simulator(self, sim_config, crosstool):
        facts = resolve(sim_config.with_options(bitcode_mode="embedded_markers"), crosstool)
        assert facts.bitcode_mode == "none"

    def test_unknown_cpu_fails(self, crosstool):
        with pytest.raises(ConfigurationError):
            resolve(AppleConfiguration(platform_type="watchos", cpu="arm64"), crosstool)

    def test_deterministic(self, device_config, crosstool):
        assert resolve(device_config, crosstool) == resolve(device_config, crosstool)
