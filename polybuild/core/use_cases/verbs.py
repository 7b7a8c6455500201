"""
Verb use case — run one verb across the project's ecosystems.

This is the vertical slice from CLI intent to finished processes:
resolve the project root and config, pick the ecosystems, then hand
each one to an Orchestrator in turn. Errors come back on the result
object instead of being raised, so every front end reports them the
same way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from polybuild.adapters import MockInvoker, SubprocessInvoker
from polybuild.adapters.base import Invoker
from polybuild.adapters.languages.base import LanguageAdapter
from polybuild.adapters.registry import LanguageRegistry, default_registry
from polybuild.core.config.loader import (
    BuildConfig,
    ConfigError,
    find_project_file,
    load_config,
)
from polybuild.core.engine.orchestrator import PRIMARY_VERBS, Orchestrator, VerbResult
from polybuild.core.errors import (
    ExternalToolFailure,
    MissingManifestError,
    PolybuildError,
    ToolchainInstallFailure,
    UnsupportedActionError,
)
from polybuild.core.models.action import ActionResult

logger = logging.getLogger(__name__)

# Verbs every ecosystem understands
COMMON_VERBS = ("install", "build", "run", "test", "check", "clean", "reinstall")

# Verbs only offered by ecosystems that declare them
EXTRA_VERBS = ("toolchain", "clippy", "clippy-fix", "fmt", "fmt-check", "nextest")


@dataclass
class VerbRunResult:
    """Result of running one verb across ecosystems."""

    verb: str
    project_root: Path | None = None
    config_path: Path | None = None
    results: list[VerbResult] = field(default_factory=list)
    error: str | None = None
    hint: str = ""
    exit_code: int = 0
    failure: ActionResult | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "verb": self.verb,
            "project_root": str(self.project_root) if self.project_root else None,
            "ok": self.ok,
            "exit_code": self.exit_code,
            "ecosystems": [r.to_dict() for r in self.results],
        }
        if self.error:
            data["error"] = self.error
            data["hint"] = self.hint
        if self.failure is not None:
            data["failure"] = self.failure.model_dump(mode="json")
        return data


# ── Resolution helpers ──────────────────────────────────────────


def resolve_project(
    project_dir: Path | None = None,
    config_path: Path | None = None,
) -> tuple[Path, Path | None]:
    """Return (project_root, config_path).

    The root is ``project_dir`` when given, else the directory holding
    polybuild.yml, else the working directory.
    """
    if config_path is None:
        config_path = find_project_file(project_dir)

    if project_dir is not None:
        root = project_dir
    elif config_path is not None:
        root = config_path.parent
    else:
        root = Path.cwd()
    return root.resolve(), config_path


def resolve_config(
    config_path: Path | None,
    overrides: dict[str, Any] | None = None,
) -> BuildConfig:
    """defaults < polybuild.yml < explicit overrides."""
    config = load_config(config_path)
    return config.with_overrides(**(overrides or {}))


def make_invoker(mock_mode: bool = False, capture: bool = False) -> Invoker:
    """Mock or real invoker; ``capture`` keeps tool output off stdout."""
    return MockInvoker() if mock_mode else SubprocessInvoker(capture=capture)


def _offers(adapter: LanguageAdapter, verb: str) -> bool:
    if verb in PRIMARY_VERBS or verb in ("clean", "reinstall"):
        return True
    if verb == "toolchain":
        return adapter.toolchain_manager is not None
    return adapter.supports(verb) and verb != adapter.primary_action


def select_adapters(
    verb: str,
    root: Path,
    registry: LanguageRegistry,
    ecosystems: list[str] | None = None,
) -> list[LanguageAdapter]:
    """Adapters the verb should run on, in registry order.

    Raises:
        MissingManifestError: Nothing detected and nothing requested.
        UnsupportedActionError: Unknown ecosystem, or no selected
            ecosystem offers ``verb``.
    """
    if ecosystems:
        adapters = []
        for name in ecosystems:
            adapter = registry.get(name)
            if adapter is None:
                raise UnsupportedActionError(
                    f"Unknown ecosystem: {name}",
                    hint=f"Known: {', '.join(registry.names())}",
                )
            adapters.append(adapter)
        return adapters

    adapters = registry.detect_present(root)
    if not adapters:
        raise MissingManifestError(
            f"No recognized project files in {root}",
            hint="Expected one of: package.json, pyproject.toml, "
            "requirements.txt, setup.py, Cargo.toml",
        )

    offering = [a for a in adapters if _offers(a, verb)]
    if not offering:
        raise UnsupportedActionError(
            f"'{verb}' is not available for {', '.join(a.name for a in adapters)}",
        )
    return offering


# ── Use case ────────────────────────────────────────────────────


def run_verb(
    verb: str,
    project_dir: Path | None = None,
    config_path: Path | None = None,
    ecosystems: list[str] | None = None,
    overrides: dict[str, Any] | None = None,
    mock_mode: bool = False,
    capture: bool = False,
    invoker: Invoker | None = None,
    registry: LanguageRegistry | None = None,
) -> VerbRunResult:
    """Run ``verb`` on every selected ecosystem, one after another.

    Args:
        verb: Verb name (install, build, run, test, clean, ...).
        project_dir: Project root (default: polybuild.yml dir or cwd).
        config_path: Explicit polybuild.yml path.
        ecosystems: Restrict to these ecosystems (default: detected).
        overrides: CLI values layered over the config file.
        mock_mode: Use the MockInvoker instead of real processes.
        capture: Collect tool output into the results (``--json``).
        invoker: Pre-built invoker (tests).
        registry: Pre-built language registry (tests).

    Returns:
        VerbRunResult; the first failure stops the run.
    """
    result = VerbRunResult(verb=verb)

    try:
        root, config_path = resolve_project(project_dir, config_path)
        result.project_root = root
        result.config_path = config_path
        config = resolve_config(config_path, overrides)
    except ConfigError as e:
        result.error = str(e)
        result.exit_code = 1
        return result

    registry = registry or default_registry()
    invoker = invoker or make_invoker(mock_mode, capture)

    try:
        adapters = select_adapters(verb, root, registry, ecosystems)
        for adapter in adapters:
            logger.info("[%s] %s in %s", verb, adapter.name, root)
            orchestrator = Orchestrator(adapter, adapter.context(root, config), invoker)
            result.results.append(orchestrator.perform(verb))
    except (ExternalToolFailure, ToolchainInstallFailure) as e:
        result.error = str(e)
        result.hint = e.hint
        result.exit_code = e.exit_code
        result.failure = e.result
    except PolybuildError as e:
        result.error = str(e)
        result.hint = e.hint
        result.exit_code = e.exit_code

    return result
