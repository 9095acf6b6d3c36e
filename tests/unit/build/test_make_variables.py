"""
Unit tests for make-variable expansion.
"""

import pytest

from objcplan.build.make_variables import (
    MakeVariableError,
    expand,
    referenced_variables,
    undefined_variables,
    variables_for,
)
from objcplan.build.platform_resolver import resolve


class TestExpand:
    """Test suite for expand."""

    def test_expands_reference(self):
        assert expand("-DCPU=$(TARGET_CPU)", {"TARGET_CPU": "ios_i386"}) == "-DCPU=ios_i386"

    def test_double_dollar(self):
        assert expand("a$$b", {}) == "a$b"
        assert expand("$$(TARGET_CPU)", {"TARGET_CPU": "x"}) == "$(TARGET_CPU)"

    def test_undefined(self):
        with pytest.raises(MakeVariableError, match=r"\$\(FOO\) not defined"):
            expand("$(FOO)", {"TARGET_CPU": "x"})

    def test_plain_text_untouched(self):
        assert expand("-fobjc-arc", {}) == "-fobjc-arc"


class TestReferences:
    """Test suite for reference scanning."""

    def test_referenced_variables(self):
        assert referenced_variables("$(A) $$ $(B)") == ["A", "B"]

    def test_undefined_variables(self):
        assert undefined_variables("$(TARGET_CPU) $(BOGUS)") == ["BOGUS"]


class TestVariablesFor:
    """Test suite for the per-configuration variable table."""

    def test_simulator_table(self, sim_config, crosstool):
        variables = variables_for(resolve(sim_config, crosstool))
        assert variables == {
            "TARGET_CPU": "ios_x86_64",
            "COMPILATION_MODE": "fastbuild",
            "BINDIR": "build-out/ios_x86_64-fastbuild/bin",
            "GENDIR": "build-out/ios_x86_64-fastbuild/genfiles",
        }

    def test_macos_cpu_prefix(self, crosstool):
        from objcplan.config.apple_config import AppleConfiguration

        facts = resolve(AppleConfiguration(platform_type="macos", cpu="x86_64", compilation_mode="opt"), crosstool)
        assert variables_for(facts)["TARGET_CPU"] == "darwin_x86_64"
