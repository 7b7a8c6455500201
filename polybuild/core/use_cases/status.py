"""
Status and help use cases — read-only views of the project.

Neither starts a process nor writes a stamp.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from polybuild.adapters import MockInvoker
from polybuild.adapters.registry import LanguageRegistry, default_registry
from polybuild.core.config.loader import BuildConfig, ConfigError
from polybuild.core.engine.orchestrator import Orchestrator
from polybuild.core.services.detector import read_linker_mode
from polybuild.core.use_cases.verbs import (
    COMMON_VERBS,
    EXTRA_VERBS,
    resolve_config,
    resolve_project,
)


@dataclass
class StatusResult:
    """Per-ecosystem detection, fingerprint and stamp state."""

    project_root: Path | None = None
    config_path: Path | None = None
    ecosystems: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "project_root": str(self.project_root),
            "config_path": str(self.config_path) if self.config_path else None,
            "ecosystems": self.ecosystems,
        }


@dataclass
class HelpResult:
    """Verbs, effective configuration and detection priority."""

    project_root: Path | None = None
    config_path: Path | None = None
    config: BuildConfig | None = None
    verbs: dict[str, list[str]] = field(default_factory=dict)
    ecosystems: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "project_root": str(self.project_root),
            "config_path": str(self.config_path) if self.config_path else None,
            "config": self.config.model_dump(mode="json") if self.config else None,
            "verbs": self.verbs,
            "ecosystems": self.ecosystems,
        }


def get_status(
    project_dir: Path | None = None,
    config_path: Path | None = None,
    ecosystems: list[str] | None = None,
    overrides: dict[str, Any] | None = None,
    registry: LanguageRegistry | None = None,
) -> StatusResult:
    """Detected variant, linker mode, fingerprint and freshness.

    Every requested ecosystem is reported, or every detected one when
    none is requested.
    """
    result = StatusResult()
    try:
        root, config_path = resolve_project(project_dir, config_path)
        config = resolve_config(config_path, overrides)
    except ConfigError as e:
        result.error = str(e)
        return result

    result.project_root = root
    result.config_path = config_path
    registry = registry or default_registry()

    if ecosystems:
        adapters = [a for a in registry.adapters() if a.name in ecosystems]
    else:
        adapters = registry.detect_present(root)

    # Status never dispatches
    invoker = MockInvoker()
    for adapter in adapters:
        orchestrator = Orchestrator(adapter, adapter.context(root, config), invoker)
        info = orchestrator.status()
        if orchestrator.descriptor is not None and adapter.name == "node":
            info["linker"] = read_linker_mode(orchestrator.descriptor)
        result.ecosystems.append(info)

    return result


def get_help(
    project_dir: Path | None = None,
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
    registry: LanguageRegistry | None = None,
) -> HelpResult:
    """What a user needs before running any verb."""
    result = HelpResult()
    try:
        root, config_path = resolve_project(project_dir, config_path)
        result.config = resolve_config(config_path, overrides)
    except ConfigError as e:
        result.error = str(e)
        return result

    result.project_root = root
    result.config_path = config_path
    registry = registry or default_registry()

    for adapter in registry.adapters():
        ctx = adapter.context(root, result.config)
        descriptor = adapter.scan(ctx)
        extras = sorted(a for a in adapter.actions if a in EXTRA_VERBS)
        if adapter.toolchain_manager is not None:
            extras.insert(0, "toolchain")
        result.verbs[adapter.name] = extras
        result.ecosystems.append(
            {
                "name": adapter.name,
                "title": adapter.title,
                "present": adapter.is_present(root),
                "primary_action": adapter.primary_action,
                "output_dir": ctx.output_dir,
                "interpreter": ctx.interpreter,
                "entry": ctx.entry,
                "files": descriptor.paths,
                "priority": adapter.priority_lines(),
            }
        )

    result.verbs["common"] = list(COMMON_VERBS)
    return result
