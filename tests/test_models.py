"""
Tests for core models — parameters, invocations, results, variants.
"""

import pytest
from pydantic import ValidationError

from polybuild.core.models.action import ActionResult, Invocation
from polybuild.core.models.markers import Marker, MarkerRole, MarkerSpec, ProjectDescriptor
from polybuild.core.models.params import ParameterTuple
from polybuild.core.models.variant import ToolVariant


class TestParameterTuple:
    def test_defaults(self):
        p = ParameterTuple()
        assert p.profile == "dev"
        assert p.features == ()
        assert p.target_arch is None
        assert p.toolchain is None
        assert not p.is_release

    def test_features_split_and_deduplicated(self):
        p = ParameterTuple(features=["a,b", " c ", "a", ""])
        assert p.features == ("a", "b", "c")

    def test_features_from_string(self):
        assert ParameterTuple(features="x, y").features == ("x", "y")

    def test_blank_target_is_none(self):
        assert ParameterTuple(target_arch="  ").target_arch is None

    def test_invalid_profile(self):
        with pytest.raises(ValidationError):
            ParameterTuple(profile="debug")

    def test_frozen(self):
        p = ParameterTuple()
        with pytest.raises(ValidationError):
            p.profile = "release"

    def test_canonical_ignores_feature_order(self):
        a = ParameterTuple(features=["b", "a"])
        b = ParameterTuple(features=["a", "b"])
        assert a.canonical() == b.canonical()

    def test_canonical_distinguishes_profile(self):
        assert (
            ParameterTuple(profile="dev").canonical()
            != ParameterTuple(profile="release").canonical()
        )

    def test_project_keeps_selected_fields(self):
        p = ParameterTuple(profile="release", features=["f"], toolchain="nightly")
        projected = p.project(("toolchain",))
        assert projected.toolchain == "nightly"
        assert projected.profile == "dev"
        assert projected.features == ()

    def test_project_empty_is_default(self):
        p = ParameterTuple(profile="release", target_arch="x")
        assert p.project(()) == ParameterTuple()

    def test_project_unknown_field(self):
        with pytest.raises(ValueError):
            ParameterTuple().project(("colour",))


class TestInvocation:
    def test_command_line_quotes(self):
        inv = Invocation(argv=["pip", "install", "-r", "my reqs.txt"])
        assert inv.command_line == "pip install -r 'my reqs.txt'"
        assert inv.program == "pip"

    def test_empty_argv(self):
        assert Invocation(argv=[]).program == ""


class TestActionResult:
    def test_success(self):
        r = ActionResult.success("install", output="done")
        assert r.ok
        assert not r.failed
        assert r.exit_code == 0

    def test_failure(self):
        r = ActionResult.failure("build", error="boom", exit_code=101)
        assert r.failed
        assert r.exit_code == 101
        assert r.error == "boom"

    def test_skip(self):
        r = ActionResult.skip("install", reason="up to date")
        assert r.status == "skipped"
        assert r.output == "up to date"
        assert not r.ok
        assert not r.failed


class TestToolVariant:
    def test_label_plain(self):
        assert ToolVariant(ecosystem="node", name="pnpm", tool="pnpm").label == "pnpm"

    def test_label_linker(self):
        v = ToolVariant(ecosystem="node", name="yarn", tool="yarn", linker="pnp")
        assert v.label == "yarn (linker: pnp)"

    def test_label_toolchain(self):
        v = ToolVariant(ecosystem="rust", name="cargo", tool="cargo", toolchain="nightly")
        assert v.label == "cargo +nightly"


class TestProjectDescriptor:
    def _descriptor(self) -> ProjectDescriptor:
        return ProjectDescriptor(
            root="/p",
            ecosystem="node",
            markers=[
                Marker(path="package.json", role=MarkerRole.MANIFEST),
                Marker(path="yarn.lock", role=MarkerRole.LOCKFILE_STRICT),
            ],
            candidates=["package.json", "yarn.lock", "pnpm-lock.yaml"],
        )

    def test_lookup(self):
        d = self._descriptor()
        assert d.has("yarn.lock")
        assert not d.has("pnpm-lock.yaml")
        assert d.get("package.json").role == MarkerRole.MANIFEST
        assert d.get("missing") is None

    def test_by_role(self):
        d = self._descriptor()
        assert [m.path for m in d.by_role(MarkerRole.LOCKFILE_STRICT)] == ["yarn.lock"]

    def test_paths_and_empty(self):
        d = self._descriptor()
        assert d.paths == ["package.json", "yarn.lock"]
        assert not d.is_empty
        assert ProjectDescriptor(root="/p", ecosystem="node").is_empty

    def test_marker_spec_glob(self):
        assert MarkerSpec(pattern="*/Cargo.toml", role=MarkerRole.WORKSPACE_MEMBER).is_glob
        assert not MarkerSpec(pattern="Cargo.toml", role=MarkerRole.MANIFEST).is_glob
