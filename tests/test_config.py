"""
Tests for configuration loading — polybuild.yml parsing and overrides.
"""

import textwrap
from pathlib import Path

import pytest

from polybuild.adapters.languages import NodeAdapter, PythonAdapter, RustAdapter
from polybuild.core.config.loader import (
    BuildConfig,
    ConfigError,
    find_project_file,
    load_config,
)


@pytest.fixture
def valid_config(tmp_path: Path) -> Path:
    """Create a valid polybuild.yml in a temp directory."""
    content = textwrap.dedent("""\
        toolchain: nightly
        profile: release
        features: simd, serde
        target_arch: wasm32-unknown-unknown
        strict_lint: false

        python:
          interpreter: python3.12
          entry: app.py
        rust:
          output_dir: build
    """)
    path = tmp_path / "polybuild.yml"
    path.write_text(content)
    return path


class TestLoadConfig:
    def test_defaults_without_file(self):
        config = load_config(None)
        assert config.toolchain == "stable"
        assert config.profile == "dev"
        assert config.features == []
        assert config.target_arch is None
        assert config.strict_lint is True

    def test_valid_file(self, valid_config: Path):
        config = load_config(valid_config)
        assert config.toolchain == "nightly"
        assert config.profile == "release"
        assert config.features == ["simd", "serde"]
        assert config.strict_lint is False
        assert config.python.interpreter == "python3.12"

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "polybuild.yml"
        path.write_text("")
        assert load_config(path) == BuildConfig()

    def test_missing_explicit_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "polybuild.yml"
        path.write_text("profile: [dev\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "polybuild.yml"
        path.write_text("- dev\n- release\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_invalid_profile(self, tmp_path: Path):
        path = tmp_path / "polybuild.yml"
        path.write_text("profile: debug\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)


class TestFindProjectFile:
    def test_walks_up(self, tmp_path: Path):
        (tmp_path / "polybuild.yml").write_text("profile: dev\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_project_file(nested) == (tmp_path / "polybuild.yml").resolve()

    def test_not_found(self, tmp_path: Path):
        assert find_project_file(tmp_path) is None


class TestOverrides:
    def test_cli_beats_file(self, valid_config: Path):
        config = load_config(valid_config).with_overrides(profile="dev", toolchain=None)
        assert config.profile == "dev"
        assert config.toolchain == "nightly"

    def test_no_overrides_same_object(self):
        config = BuildConfig()
        assert config.with_overrides(profile=None) is config

    def test_invalid_override(self):
        with pytest.raises(ConfigError):
            BuildConfig().with_overrides(profile="fast")

    def test_feature_string_split(self):
        assert BuildConfig(features="a, b,,c").features == ["a", "b", "c"]

    def test_parameters_snapshot(self, valid_config: Path):
        params = load_config(valid_config).parameters()
        assert params.profile == "release"
        assert params.features == ("simd", "serde")
        assert params.toolchain == "nightly"


class TestEcosystemSettings:
    def test_adapter_defaults(self, tmp_path: Path):
        config = BuildConfig()
        assert NodeAdapter().context(tmp_path, config).output_dir == "node_modules"
        py = PythonAdapter().context(tmp_path, config)
        assert (py.output_dir, py.interpreter, py.entry) == ("venv", "python3", "main.py")
        assert RustAdapter().context(tmp_path, config).output_dir == "target"

    def test_section_overrides(self, valid_config: Path, tmp_path: Path):
        config = load_config(valid_config)
        py = PythonAdapter().context(tmp_path, config)
        assert py.interpreter == "python3.12"
        assert py.entry == "app.py"
        assert RustAdapter().context(tmp_path, config).output_dir == "build"

    def test_global_output_dir(self, tmp_path: Path):
        config = BuildConfig(output_dir="out")
        assert NodeAdapter().context(tmp_path, config).output_dir == "out"

    def test_section_beats_global(self, tmp_path: Path):
        config = BuildConfig.model_validate({"output_dir": "out", "rust": {"output_dir": "tgt"}})
        assert RustAdapter().context(tmp_path, config).output_dir == "tgt"

    def test_parameters_projected(self, valid_config: Path, tmp_path: Path):
        config = load_config(valid_config)
        assert NodeAdapter().context(tmp_path, config).parameters.profile == "dev"
        assert RustAdapter().context(tmp_path, config).parameters.profile == "release"

    def test_strict_lint_flows_to_context(self, valid_config: Path, tmp_path: Path):
        assert RustAdapter().context(tmp_path, load_config(valid_config)).strict_lint is False


class TestOutputDirValidation:
    @pytest.mark.parametrize("value", [".", "", "  ", "..", "../sibling", "a/../..", "/", "/tmp/out"])
    def test_rejects_root_and_outside(self, value: str):
        with pytest.raises(ConfigError):
            BuildConfig().with_overrides(output_dir=value)

    def test_rejects_in_section(self, tmp_path: Path):
        path = tmp_path / "polybuild.yml"
        path.write_text("node:\n  output_dir: ..\n")
        with pytest.raises(ConfigError, match="output_dir"):
            load_config(path)

    @pytest.mark.parametrize("value", ["out", "build/cache", "./dist", "a/../b"])
    def test_accepts_subdirectories(self, value: str):
        assert BuildConfig().with_overrides(output_dir=value).output_dir == value
