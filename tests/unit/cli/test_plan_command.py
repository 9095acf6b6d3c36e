"""
Unit tests for the objcplan CLI commands.

Commands are driven through ``main()`` with a patched ``sys.argv``.
"""

import json
import logging
from unittest.mock import patch

import pytest

from objcplan.cli import main

WORKSPACE = """\
[workspace]
default_config = ios_sim

[config:ios_sim]
apple_platform_type = ios
cpu = i386

[config:ios_device]
cpu = arm64
experimental_objc_enable_module_maps = true

[target://objc:lib]
srcs = a.m private.h
hdrs = a.h
deps = //base:base

[target://base:base]
srcs = b.m
defines = BASE=$(TARGET_CPU)
"""


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def workspace(tmp_path):
    path = tmp_path / "workspace.ini"
    path.write_text(WORKSPACE)
    return path


def run(*argv):
    with patch("sys.argv", ["objcplan", *argv]):
        with pytest.raises(SystemExit) as exc_info:
            main()
    return exc_info.value.code


class TestPlanCommand:
    """Test suite for `objcplan plan`."""

    def test_plan_all(self, workspace, capsys):
        assert run("plan", str(workspace)) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["configuration"] == "ios_sim"
        assert [target["label"] for target in payload["targets"]] == ["//objc:lib", "//base:base"]

        objc = payload["targets"][0]
        compile_action = objc["actions"][0]
        assert compile_action["mnemonic"] == "ObjcCompile"
        assert compile_action["arguments"][0] == "tools/osx/crosstool/iossim/wrapped_clang"
        assert "-DBASE=ios_i386" in compile_action["arguments"]
        assert compile_action["outputs"] == [
            "build-out/ios_i386-fastbuild/bin/objc/_objs/lib/arc/a.o",
            "build-out/ios_i386-fastbuild/bin/objc/_objs/lib/arc/a.d",
        ]
        assert compile_action["execution_requirements"] == ["requires-darwin"]

        fully_linked = objc["actions"][-1]
        assert fully_linked["mnemonic"] == "ObjcLinkFullyLinked"
        assert fully_linked["inputs"] == [
            "build-out/ios_i386-fastbuild/bin/objc/liblib.a",
            "build-out/ios_i386-fastbuild/bin/base/libbase.a",
        ]

    def test_plan_one_target_named_config(self, workspace, capsys):
        assert run("plan", str(workspace), "-c", "ios_device", "-t", "//base:base", "-j", "1") == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["configuration"] == "ios_device"
        (target,) = payload["targets"]
        assert target["actions"][0]["mnemonic"] == "ModuleMap"
        assert target["actions"][1]["arguments"][0] == "tools/osx/crosstool/ios/wrapped_clang"

    def test_unknown_configuration(self, workspace, capsys):
        assert run("plan", str(workspace), "-c", "nope") == 1
        assert "Configuration 'nope' not found" in capsys.readouterr().err

    def test_unknown_target(self, workspace, capsys):
        assert run("plan", str(workspace), "-t", "//missing:missing") == 1
        assert "no such target" in capsys.readouterr().err

    def test_invalid_declaration(self, tmp_path, capsys):
        path = tmp_path / "workspace.ini"
        path.write_text("[config:sim]\ncpu = x86_64\n[target://x:x]\nsrcs = a.m\nnon_arc_srcs = a.m\n")
        assert run("plan", str(path)) == 1
        err = capsys.readouterr().err
        assert "Analysis failed" in err
        assert "present in both srcs and non_arc_srcs" in err

    def test_workspace_without_configurations(self, tmp_path, capsys):
        path = tmp_path / "workspace.ini"
        path.write_text("[target://x:x]\nsrcs = a.m\n")
        assert run("plan", str(path)) == 1
        err = capsys.readouterr().err
        assert "Analysis failed" in err
        assert "No configurations found in" in err
        assert "Unexpected error" not in err

    def test_missing_workspace(self, tmp_path):
        assert run("plan", str(tmp_path / "missing.ini")) == 2

    def test_no_command_prints_help(self, capsys):
        assert run() == 0
        assert "usage: objcplan" in capsys.readouterr().out


class TestValidateCommand:
    """Test suite for `objcplan validate`."""

    def test_valid(self, workspace, capsys):
        assert run("validate", str(workspace)) == 0
        assert "All declarations valid" in capsys.readouterr().err

    def test_errors(self, tmp_path, capsys):
        path = tmp_path / "workspace.ini"
        path.write_text("[target://x:x]\nsrcs = a.foo\nincludes = /abs\n")
        assert run("validate", str(path)) == 1
        captured = capsys.readouterr()
        assert "2 error(s), 0 warning(s)" in captured.out
        assert "does not produce any objc_library srcs files" in captured.err

    def test_resources_disabled_with_config(self, tmp_path, capsys):
        path = tmp_path / "workspace.ini"
        path.write_text(
            "[config:strict]\nincompatible_disable_objc_library_resources = true\n"
            "[target://x:x]\nsrcs = a.m\nxibs = a.xib\n"
        )
        assert run("validate", str(path)) == 0
        assert run("validate", str(path), "-c", "strict") == 1
        assert "resource attributes are not allowed" in capsys.readouterr().err


class TestProvidersCommand:
    """Test suite for `objcplan providers`."""

    def test_providers(self, workspace, capsys):
        assert run("providers", str(workspace), "-t", "//objc:lib") == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["label"] == "//objc:lib"
        providers = payload["providers"]
        assert providers["LIBRARY"] == [
            "build-out/ios_i386-fastbuild/bin/objc/liblib.a",
            "build-out/ios_i386-fastbuild/bin/base/libbase.a",
        ]
        assert providers["DEFINE"] == ["BASE=$(TARGET_CPU)"]
        assert providers["HEADER"] == ["objc/a.h"]
        assert providers["FLAG"] == ["uses_objc_sources"]

    def test_target_required(self, workspace):
        assert run("providers", str(workspace)) == 2
