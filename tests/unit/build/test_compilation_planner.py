"""
Unit tests for CompilationPlanner and object path assignment.
"""

from objcplan.build.actions import Artifact
from objcplan.build.compiler import (
    CompilationPlanner,
    compile_sources,
    dotd_for,
    module_map_for,
    object_paths,
)
from objcplan.build.platform_resolver import resolve
from objcplan.build.providers import compute_providers

SIM_BIN = "build-out/ios_x86_64-fastbuild/bin"
SIM_GEN = "build-out/ios_x86_64-fastbuild/genfiles"


def plan(decl, config, toolchain, deps=()):
    providers = compute_providers(decl, list(deps))
    return CompilationPlanner(toolchain).plan(decl, providers, resolve(config, toolchain))


class TestObjectPaths:
    """Test suite for object path assignment."""

    def test_buckets(self, declare):
        decl = declare("//objc:lib", srcs=["a.m", "private.h"], non_arc_srcs=["b.m"])
        objects = object_paths(decl, SIM_BIN)
        assert [obj.exec_path for obj in objects.values()] == [
            f"{SIM_BIN}/objc/_objs/lib/arc/a.o",
            f"{SIM_BIN}/objc/_objs/lib/non_arc/b.o",
        ]

    def test_colliding_stems_are_numbered(self, declare):
        decl = declare("//objc:lib", srcs=["a.m", "sub/a.m", "a.cc", "b.m"])
        objects = object_paths(decl, SIM_BIN)
        assert [obj.root_relative_path for obj in objects.values()] == [
            "objc/_objs/lib/arc/0/a.o",
            "objc/_objs/lib/arc/1/a.o",
            "objc/_objs/lib/arc/2/a.o",
            "objc/_objs/lib/arc/b.o",
        ]

    def test_same_stem_in_different_buckets(self, declare):
        decl = declare("//objc:lib", srcs=["a.m"], non_arc_srcs=["sub/a.m"])
        objects = object_paths(decl, SIM_BIN)
        assert [obj.root_relative_path for obj in objects.values()] == [
            "objc/_objs/lib/arc/a.o",
            "objc/_objs/lib/non_arc/a.o",
        ]

    def test_duplicate_sources_collapse(self, declare):
        assert len(compile_sources(declare("//objc:lib", srcs=["a.m", "a.m"]))) == 1

    def test_dotd_next_to_object(self):
        assert dotd_for(Artifact(SIM_BIN, "x/_objs/x/arc/a.o")) == Artifact(SIM_BIN, "x/_objs/x/arc/a.d")


class TestPlan:
    """Test suite for CompilationPlanner.plan."""

    def test_one_action_per_source(self, declare, sim_config, crosstool):
        actions = plan(declare("//objc:lib", srcs=["a.m", "b.m", "private.h"], non_arc_srcs=["c.m"]),
                       sim_config, crosstool)
        assert [action.source.exec_path for action in actions] == ["objc/a.m", "objc/b.m", "objc/c.m"]
        assert all(action.mnemonic == "ObjcCompile" for action in actions)
        assert all(action.owner == "//objc:lib" for action in actions)

    def test_action_shape(self, declare, sim_config, crosstool):
        decl = declare("//objc:lib", srcs=["a.m", "private.h"], hdrs=["c.h"], pch="lib.pch")
        dep = compute_providers(declare("//dep:dep", hdrs=["d.h"]), [])
        (action,) = plan(decl, sim_config, crosstool, deps=[dep])

        assert action.arguments[0] == "tools/osx/crosstool/iossim/wrapped_clang"
        assert action.inputs == (
            Artifact.source("objc/a.m"),
            Artifact.source("objc/private.h"),
            Artifact.source("objc/c.h"),
            Artifact.source("dep/d.h"),
            Artifact.source("objc/lib.pch"),
        )
        assert action.outputs == (
            Artifact(SIM_BIN, "objc/_objs/lib/arc/a.o"),
            Artifact(SIM_BIN, "objc/_objs/lib/arc/a.d"),
        )
        assert action.env == {"APPLE_SDK_PLATFORM": "iPhoneSimulator", "APPLE_SDK_VERSION_OVERRIDE": "8.4"}
        assert action.execution_requirements == ("requires-darwin",)
        assert action.use_dotd_pruning

    def test_dotd_pruning_follows_configuration(self, declare, sim_config, crosstool):
        (action,) = plan(declare("//objc:lib", srcs=["a.m"]),
                         sim_config.with_options(use_dotd_pruning=False), crosstool)
        assert not action.use_dotd_pruning

    def test_other_rule_kinds_not_compiled_here(self, declare, sim_config, crosstool):
        assert plan(declare("//cc:lib", "cc_library", srcs=["a.cc"]), sim_config, crosstool) == []
        assert plan(declare("//imp:imp", "objc_import", archives=["libfoo.a"]), sim_config, crosstool) == []

    def test_headers_only_target(self, declare, sim_config, crosstool):
        assert plan(declare("//objc:lib", hdrs=["a.h"]), sim_config, crosstool) == []

    def test_module_map_input_when_enabled(self, declare, sim_config, crosstool):
        config = sim_config.with_options(enable_module_maps=True)
        decl = declare("//objc:lib", srcs=["a.m"], hdrs=["a.h"])
        module_map = Artifact(SIM_GEN, "objc/lib.modulemaps/module.modulemap")
        providers = compute_providers(decl, [], module_map=module_map)
        (action,) = CompilationPlanner(crosstool).plan(decl, providers, resolve(config, crosstool))
        assert action.inputs[-1] == module_map
        assert f"-fmodule-map-file={module_map.exec_path}" in action.arguments
        assert "-fmodule-name=objc_lib" in action.arguments

    def test_planning_is_deterministic(self, declare, device_config, crosstool):
        decl = declare("//objc:lib", srcs=["a.m", "b.mm"], defines=["A"], copts=["-x"])
        assert plan(decl, device_config, crosstool) == plan(decl, device_config, crosstool)


class TestModuleMapFor:
    """Test suite for module_map_for."""

    def test_disabled(self, declare, sim_config, crosstool):
        facts = resolve(sim_config, crosstool)
        assert module_map_for(declare("//objc:lib", hdrs=["a.h"]), facts) == (None, None)

    def test_generated(self, declare, sim_config, crosstool):
        facts = resolve(sim_config.with_options(enable_module_maps=True), crosstool)
        artifact, name = module_map_for(declare("//objc:lib", hdrs=["a.h"], module_name="Lib"), facts)
        assert artifact == Artifact(SIM_GEN, "objc/lib.modulemaps/module.modulemap")
        assert name == "Lib"

    def test_custom(self, declare, sim_config, crosstool):
        facts = resolve(sim_config.with_options(enable_module_maps=True), crosstool)
        assert module_map_for(declare("//objc:lib", module_map="lib.modulemap"), facts) == (
            Artifact.source("objc/lib.modulemap"), None
        )
