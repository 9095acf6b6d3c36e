"""
Unit tests for AppleConfiguration.
"""

import pytest

from objcplan.config.apple_config import AppleConfiguration, ConfigurationError, parse_dotted_version


class TestDefaults:
    """Test suite for default values and derived properties."""

    def test_defaults(self):
        config = AppleConfiguration()
        assert config.platform_type == "ios"
        assert config.cpu == "x86_64"
        assert config.compilation_mode == "fastbuild"
        assert config.bitcode_mode == "none"
        assert config.use_dotd_pruning
        assert not config.enable_module_maps
        assert config.effective_sdk_version == "8.4"
        assert config.effective_minimum_os == "8.4"

    def test_output_roots(self):
        config = AppleConfiguration(platform_type="ios", cpu="i386", compilation_mode="dbg")
        assert config.target_cpu == "ios_i386"
        assert config.bin_root == "build-out/ios_i386-dbg/bin"
        assert config.genfiles_root == "build-out/ios_i386-dbg/genfiles"

    def test_macos_target_cpu(self):
        assert AppleConfiguration(platform_type="macos").target_cpu == "darwin_x86_64"

    def test_minimum_os_override(self):
        config = AppleConfiguration(sdk_version="9.3", minimum_os_version="8.0")
        assert config.effective_sdk_version == "9.3"
        assert config.effective_minimum_os == "8.0"

    def test_hashable(self):
        assert len({AppleConfiguration(), AppleConfiguration()}) == 1


class TestValidation:
    """Test suite for field validation."""

    @pytest.mark.parametrize("changes", [
        {"platform_type": "android"},
        {"compilation_mode": "release"},
        {"bitcode_mode": "full"},
        {"cpu": ""},
        {"sdk_version": ""},
        {"xcode_version": "7.x"},
        {"minimum_os_version": "nine"},
    ])
    def test_rejects(self, changes):
        with pytest.raises(ConfigurationError):
            AppleConfiguration(**changes)

    def test_with_options_revalidates(self):
        with pytest.raises(ConfigurationError):
            AppleConfiguration().with_options(compilation_mode="fast")

    def test_parse_dotted_version(self):
        assert parse_dotted_version("9.10.11", "x") == (9, 10, 11)
        with pytest.raises(ConfigurationError, match="--xcode_version was defined but is empty"):
            parse_dotted_version(" ", "xcode_version")


class TestFromOptions:
    """Test suite for AppleConfiguration.from_options."""

    def test_typical_options(self):
        config = AppleConfiguration.from_options({
            "apple_platform_type": "ios",
            "cpu": "arm64",
            "apple_bitcode": "embedded",
            "compilation_mode": "opt",
            "ios_sdk_version": "9.3",
            "ios_minimum_os": "8.0",
            "xcode_version": "7.3.1",
            "objccopt": "-a -b",
        })
        assert config.cpu == "arm64"
        assert config.bitcode_mode == "embedded"
        assert config.compilation_mode == "opt"
        assert config.sdk_version == "9.3"
        assert config.minimum_os_version == "8.0"
        assert config.xcode_version == "7.3.1"
        assert config.objccopts == ("-a", "-b")

    def test_prefixed_cpu(self):
        config = AppleConfiguration.from_options({"cpu": "ios_i386"})
        assert config.platform_type == "ios"
        assert config.cpu == "i386"

    def test_darwin_cpu(self):
        config = AppleConfiguration.from_options({"cpu": "darwin_x86_64"})
        assert config.platform_type == "macos"
        assert config.cpu == "x86_64"

    def test_platform_cpu_option(self):
        config = AppleConfiguration.from_options({"apple_platform_type": "watchos", "watchos_cpu": "armv7k"})
        assert config.cpu == "armv7k"

    def test_default_cpu_per_platform(self):
        assert AppleConfiguration.from_options({"apple_platform_type": "watchos"}).cpu == "i386"

    def test_other_platform_options_ignored(self):
        config = AppleConfiguration.from_options({"apple_platform_type": "ios", "tvos_sdk_version": "10.0"})
        assert config.sdk_version is None

    def test_empty_other_platform_option_rejected(self):
        with pytest.raises(ConfigurationError, match="--tvos_sdk_version was defined but is empty"):
            AppleConfiguration.from_options({"tvos_sdk_version": ""})

    @pytest.mark.parametrize("raw,expected", [("true", True), ("0", False), ("", True), (None, True), (False, False)])
    def test_booleans(self, raw, expected):
        config = AppleConfiguration.from_options({"experimental_objc_enable_module_maps": raw})
        assert config.enable_module_maps is expected

    def test_bad_boolean(self):
        with pytest.raises(ConfigurationError, match="expected a boolean"):
            AppleConfiguration.from_options({"collect_code_coverage": "maybe"})

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError, match="unknown option --frobnicate"):
            AppleConfiguration.from_options({"frobnicate": "1"})

    def test_empty_xcode_version(self):
        with pytest.raises(ConfigurationError, match="--xcode_version was defined but is empty"):
            AppleConfiguration.from_options({"xcode_version": ""})
