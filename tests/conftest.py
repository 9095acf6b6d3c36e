"""
Shared fixtures for the objcplan test suite.
"""

import pytest

from objcplan.build.attributes import TargetDeclaration
from objcplan.config.apple_config import AppleConfiguration
from objcplan.packages.toolchain import XcodeCrosstool

SDK = "__BAZEL_XCODE_SDKROOT__"
DEVELOPER_DIR = "__BAZEL_XCODE_DEVELOPER_DIR__"


@pytest.fixture
def sim_config():
    """iOS simulator (x86_64), fastbuild."""
    return AppleConfiguration(platform_type="ios", cpu="x86_64")


@pytest.fixture
def device_config():
    """iOS device (arm64), fastbuild."""
    return AppleConfiguration(platform_type="ios", cpu="arm64")


@pytest.fixture
def crosstool():
    """Default Xcode crosstool."""
    return XcodeCrosstool()


@pytest.fixture
def test_crosstool():
    """Crosstool with marker flags per mode and per feature."""
    return XcodeCrosstool(
        mode_flags={
            "dbg": ["--DBG_ONLY_FLAG"],
            "fastbuild": ["--FASTBUILD_ONLY_FLAG"],
            "opt": ["--OPT_ONLY_FLAG"],
        },
        features={
            "xcode_5.8": ["-DXCODE_FEATURE_FOR_TESTING=xcode_5.8"],
            "contains_objc_sources": ["-DCONTAINS_OBJC"],
        },
    )


@pytest.fixture
def declare():
    """Factory building a TargetDeclaration from keyword attributes."""

    def _declare(label, kind="objc_library", **attributes):
        return TargetDeclaration.create(label, kind, **attributes)

    return _declare
