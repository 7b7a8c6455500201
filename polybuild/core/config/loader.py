"""
Configuration loader — reads polybuild.yml into a BuildConfig.

Resolution is override-before-use: built-in defaults, then the
values in polybuild.yml, then whatever the CLI passes explicitly.
A missing config file is not an error: every key has a default.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from polybuild.core.models.params import ParameterTuple

logger = logging.getLogger(__name__)

# Default config filename
PROJECT_CONFIG_FILE = "polybuild.yml"


class ConfigError(Exception):
    """Raised when polybuild.yml is invalid or unreadable."""


def check_output_dir(value: str | None) -> str | None:
    """An artifact directory must sit strictly inside the project root.

    ``clean`` removes it recursively, so the root itself, its ancestors
    and absolute paths are rejected.
    """
    if value is None:
        return None
    if not value.strip():
        raise ValueError("output_dir must not be empty")
    if Path(value).is_absolute():
        raise ValueError(f"output_dir must be relative to the project root, got {value!r}")
    parts = Path(os.path.normpath(value)).parts
    if parts in ((".",), ()) or parts[0] == "..":
        raise ValueError(f"output_dir must be a subdirectory of the project root, got {value!r}")
    return value


class EcosystemSettings(BaseModel):
    """Per-ecosystem overrides. ``None`` means the adapter default."""

    output_dir: str | None = None
    interpreter: str | None = None
    entry: str | None = None

    @field_validator("output_dir")
    @classmethod
    def _check_output_dir(cls, value: str | None) -> str | None:
        return check_output_dir(value)


class BuildConfig(BaseModel):
    """Everything a verb needs besides the project files themselves."""

    toolchain: str = "stable"
    profile: Literal["dev", "release"] = "dev"
    features: list[str] = Field(default_factory=list)
    target_arch: str | None = None
    output_dir: str | None = None
    strict_lint: bool = True

    node: EcosystemSettings = Field(default_factory=EcosystemSettings)
    python: EcosystemSettings = Field(default_factory=EcosystemSettings)
    rust: EcosystemSettings = Field(default_factory=EcosystemSettings)

    @field_validator("features", mode="before")
    @classmethod
    def _split_features(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [f.strip() for f in value.split(",") if f.strip()]
        return value

    @field_validator("output_dir")
    @classmethod
    def _check_output_dir(cls, value: str | None) -> str | None:
        return check_output_dir(value)

    def settings_for(self, ecosystem: str) -> EcosystemSettings:
        """Per-ecosystem settings with the global output_dir folded in."""
        section: EcosystemSettings = getattr(self, ecosystem, None) or EcosystemSettings()
        if self.output_dir and not section.output_dir:
            return section.model_copy(update={"output_dir": self.output_dir})
        return section

    def parameters(self) -> ParameterTuple:
        """The ParameterTuple snapshot for this configuration."""
        return ParameterTuple(
            profile=self.profile,
            features=tuple(self.features),
            target_arch=self.target_arch,
            toolchain=self.toolchain,
        )

    def with_overrides(self, **overrides: Any) -> BuildConfig:
        """Return a copy with every non-None override applied."""
        update = {k: v for k, v in overrides.items() if v is not None}
        if not update:
            return self
        try:
            return BuildConfig.model_validate({**self.model_dump(), **update})
        except ValidationError as e:
            raise ConfigError(f"Invalid option: {e}") from e


def find_project_file(start_dir: Path | None = None) -> Path | None:
    """Search for polybuild.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to polybuild.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / PROJECT_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None) -> BuildConfig:
    """Load and validate polybuild.yml.

    Args:
        path: Path to the config file, or None for pure defaults.

    Returns:
        Validated BuildConfig.

    Raises:
        ConfigError: If the file exists but is unreadable or invalid.
    """
    if path is None:
        logger.debug("No %s found — using defaults", PROJECT_CONFIG_FILE)
        return BuildConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return BuildConfig()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = BuildConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded config from %s (profile=%s)", path, config.profile)
    return config
