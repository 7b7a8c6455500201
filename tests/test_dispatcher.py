"""
Tests for command dispatch — flag translation and the lockfile policy.
"""

import pytest

from polybuild.adapters.languages import NodeAdapter, PythonAdapter, RustAdapter
from polybuild.adapters.mock import MockInvoker
from polybuild.core.config.loader import BuildConfig
from polybuild.core.errors import (
    FallbackProceeded,
    MissingToolBinaryError,
    NoLockfileWarning,
    UnsupportedActionError,
)
from polybuild.core.services.detector import detect
from polybuild.core.services.dispatcher import CommandDispatcher


def _dispatch(adapter, root, action, invoker, config=None):
    ctx = adapter.context(root, config or BuildConfig())
    variant = detect(adapter.scan(ctx), adapter.rules, ctx.parameters)
    return CommandDispatcher(invoker).run(adapter, variant, action, ctx)


# ── Node ────────────────────────────────────────────────────────────


class TestNodeDispatch:
    @pytest.mark.parametrize(
        "lock, expected",
        [
            ("pnpm-lock.yaml", "pnpm install --frozen-lockfile"),
            ("yarn.lock", "yarn install --frozen-lockfile"),
            ("bun.lockb", "bun install --frozen-lockfile"),
            ("package-lock.json", "npm ci"),
        ],
    )
    def test_frozen_install(self, make_project, mock_invoker, lock, expected):
        root = make_project("package.json", lock)
        d = _dispatch(NodeAdapter(), root, "install", mock_invoker)
        assert d.result.ok
        assert mock_invoker.commands == [expected]
        assert d.warnings == []

    def test_no_lockfile_warns(self, make_project, mock_invoker):
        root = make_project("package.json")
        d = _dispatch(NodeAdapter(), root, "install", mock_invoker)
        assert mock_invoker.commands == ["npm install"]
        assert len(d.warnings) == 1
        assert isinstance(d.warnings[0], NoLockfileWarning)

    def test_strict_lock_missing_tool_is_fatal(self, make_project):
        root = make_project("package.json", "yarn.lock")
        invoker = MockInvoker(missing=["yarn"])
        with pytest.raises(MissingToolBinaryError) as exc:
            _dispatch(NodeAdapter(), root, "install", invoker)
        assert str(exc.value) == "yarn.lock found but yarn not installed"
        assert "npm install -g yarn" in exc.value.hint
        assert invoker.call_count == 0

    def test_pnpm_missing_never_falls_back_to_npm(self, make_project):
        root = make_project("package.json", "pnpm-lock.yaml", "package-lock.json")
        invoker = MockInvoker(missing=["pnpm"])
        with pytest.raises(MissingToolBinaryError):
            _dispatch(NodeAdapter(), root, "install", invoker)
        assert invoker.call_count == 0

    def test_run_uses_interpreter_and_entry(self, make_project, mock_invoker):
        root = make_project("package.json")
        config = BuildConfig.model_validate({"node": {"entry": "server.js"}})
        _dispatch(NodeAdapter(), root, "run", mock_invoker, config)
        assert mock_invoker.commands == ["node server.js"]

    def test_test_uses_detected_tool(self, make_project, mock_invoker):
        root = make_project("package.json", "pnpm-lock.yaml")
        _dispatch(NodeAdapter(), root, "test", mock_invoker)
        assert mock_invoker.commands == ["pnpm run test"]

    def test_unsupported_action(self, make_project, mock_invoker):
        root = make_project("package.json")
        with pytest.raises(UnsupportedActionError):
            _dispatch(NodeAdapter(), root, "clippy", mock_invoker)


# ── Python ──────────────────────────────────────────────────────────


class TestPythonDispatch:
    def test_requirements_txt_steps(self, make_project, mock_invoker):
        root = make_project("requirements.txt")
        d = _dispatch(PythonAdapter(), root, "install", mock_invoker)
        venv = root.resolve() / "venv"
        assert mock_invoker.commands == [
            "python3 -m venv venv",
            f"{venv}/bin/pip install -U pip",
            f"{venv}/bin/pip install -r requirements.txt",
        ]
        assert isinstance(d.warnings[0], NoLockfileWarning)

    def test_requirements_lock_is_strict(self, make_project, mock_invoker):
        root = make_project("requirements.lock")
        d = _dispatch(PythonAdapter(), root, "install", mock_invoker)
        assert mock_invoker.commands[-1].endswith("pip install -r requirements.lock")
        assert d.warnings == []

    def test_existing_venv_not_recreated(self, make_project, mock_invoker):
        root = make_project("requirements.lock", "venv/bin/python")
        _dispatch(PythonAdapter(), root, "install", mock_invoker)
        assert not any("-m venv" in c for c in mock_invoker.commands)

    def test_poetry_export_then_pip(self, make_project, mock_invoker):
        root = make_project("pyproject.toml", "poetry.lock")
        d = _dispatch(PythonAdapter(), root, "install", mock_invoker)
        assert d.variant.name == "poetry"
        assert any(c.startswith("poetry export") for c in mock_invoker.commands)
        assert mock_invoker.commands[-1].endswith("pip install -r venv/requirements.txt")

    def test_poetry_missing_falls_back(self, make_project):
        root = make_project("pyproject.toml", "poetry.lock")
        invoker = MockInvoker(missing=["poetry"])
        d = _dispatch(PythonAdapter(), root, "install", invoker)
        assert d.result.ok
        assert d.variant.name == "editable-fallback"
        assert invoker.commands[-1].endswith("pip install -e .")
        assert [type(w) for w in d.warnings] == [FallbackProceeded]
        assert not any(c.startswith("poetry") for c in invoker.commands)

    def test_missing_interpreter_is_fatal(self, make_project):
        root = make_project("requirements.txt")
        invoker = MockInvoker(missing=["python3"])
        with pytest.raises(MissingToolBinaryError) as exc:
            _dispatch(PythonAdapter(), root, "install", invoker)
        assert exc.value.tool == "python3"

    def test_custom_interpreter(self, make_project, mock_invoker):
        root = make_project("setup.py")
        config = BuildConfig.model_validate({"python": {"interpreter": "python3.12"}})
        _dispatch(PythonAdapter(), root, "install", mock_invoker, config)
        assert mock_invoker.commands[0] == "python3.12 -m venv venv"

    def test_run_and_test_use_venv(self, make_project, mock_invoker):
        root = make_project("setup.py")
        python = root.resolve() / "venv" / "bin" / "python"
        _dispatch(PythonAdapter(), root, "run", mock_invoker)
        _dispatch(PythonAdapter(), root, "test", mock_invoker)
        assert mock_invoker.commands == [f"{python} main.py", f"{python} -m pytest"]

    def test_step_failure_stops(self, make_project, mock_invoker):
        root = make_project("requirements.txt")
        mock_invoker.set_failure("install -U pip", exit_code=3)
        d = _dispatch(PythonAdapter(), root, "install", mock_invoker)
        assert d.result.failed
        assert d.result.exit_code == 3
        assert len(d.steps) == 2
        assert mock_invoker.call_count == 2


# ── Rust ────────────────────────────────────────────────────────────


class TestRustDispatch:
    def _config(self, **kw) -> BuildConfig:
        return BuildConfig(**kw)

    def test_default_build(self, make_project, mock_invoker):
        root = make_project("Cargo.toml")
        d = _dispatch(RustAdapter(), root, "build", mock_invoker)
        assert mock_invoker.commands == ["cargo +stable build"]
        assert d.warnings == []

    def test_release_features_target(self, make_project, mock_invoker):
        root = make_project("Cargo.toml")
        config = self._config(
            toolchain="nightly", profile="release", features=["simd", "serde"],
            target_arch="wasm32-unknown-unknown",
        )
        _dispatch(RustAdapter(), root, "build", mock_invoker, config)
        assert mock_invoker.commands == [
            "cargo +nightly build --release --features simd,serde --target wasm32-unknown-unknown"
        ]

    def test_test_has_no_target(self, make_project, mock_invoker):
        root = make_project("Cargo.toml")
        config = self._config(profile="release", target_arch="x86_64-pc-windows-gnu")
        _dispatch(RustAdapter(), root, "test", mock_invoker, config)
        assert mock_invoker.commands == ["cargo +stable test --release"]

    def test_check_features_only(self, make_project, mock_invoker):
        root = make_project("Cargo.toml")
        config = self._config(profile="release", features=["a"])
        _dispatch(RustAdapter(), root, "check", mock_invoker, config)
        assert mock_invoker.commands == ["cargo +stable check --features a"]

    def test_clippy_strict(self, make_project, mock_invoker):
        root = make_project("Cargo.toml")
        _dispatch(RustAdapter(), root, "clippy", mock_invoker)
        assert mock_invoker.commands == ["cargo +stable clippy -- -D warnings"]

    def test_clippy_lenient(self, make_project, mock_invoker):
        root = make_project("Cargo.toml")
        _dispatch(RustAdapter(), root, "clippy", mock_invoker, self._config(strict_lint=False))
        assert mock_invoker.commands == ["cargo +stable clippy"]

    def test_clippy_fix(self, make_project, mock_invoker):
        root = make_project("Cargo.toml")
        _dispatch(RustAdapter(), root, "clippy-fix", mock_invoker)
        assert mock_invoker.commands == [
            "cargo +stable clippy --fix --allow-dirty --allow-staged"
        ]

    def test_fmt(self, make_project, mock_invoker):
        root = make_project("Cargo.toml")
        _dispatch(RustAdapter(), root, "fmt", mock_invoker)
        _dispatch(RustAdapter(), root, "fmt-check", mock_invoker)
        assert mock_invoker.commands == [
            "cargo +stable fmt --all",
            "cargo +stable fmt --all -- --check",
        ]

    def test_nextest_requires_plugin(self, make_project):
        root = make_project("Cargo.toml")
        invoker = MockInvoker(missing=["cargo-nextest"])
        with pytest.raises(MissingToolBinaryError) as exc:
            _dispatch(RustAdapter(), root, "nextest", invoker)
        assert "cargo install cargo-nextest" in exc.value.hint

    def test_nextest(self, make_project, mock_invoker):
        root = make_project("Cargo.toml")
        _dispatch(RustAdapter(), root, "nextest", mock_invoker, self._config(features=["x"]))
        assert mock_invoker.commands == ["cargo +stable nextest run --features x"]

    def test_missing_cargo(self, make_project):
        root = make_project("Cargo.toml")
        with pytest.raises(MissingToolBinaryError):
            _dispatch(RustAdapter(), root, "build", MockInvoker(missing=["cargo"]))

    def test_custom_target_dir_exported(self, make_project, mock_invoker):
        root = make_project("Cargo.toml")
        config = BuildConfig.model_validate({"rust": {"output_dir": "out"}})
        _dispatch(RustAdapter(), root, "build", mock_invoker, config)
        assert mock_invoker.call_log[0].env["CARGO_TARGET_DIR"] == str(root.resolve() / "out")

    def test_build_failure_passthrough(self, make_project, mock_invoker):
        root = make_project("Cargo.toml")
        mock_invoker.set_failure("cargo +stable build", exit_code=101, error="error[E0308]")
        d = _dispatch(RustAdapter(), root, "build", mock_invoker)
        assert d.result.exit_code == 101
        assert d.result.error == "error[E0308]"
