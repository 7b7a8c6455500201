"""
Language adapter base — everything ecosystem-specific lives behind this.

The core (detector, fingerprint engine, stamp store, orchestrator)
knows nothing about pnpm flags or venv layouts. It asks the adapter
for marker tables, the detection priority list, command templates,
install hints and default variable values.

To add an ecosystem:
    1. Subclass LanguageAdapter
    2. Declare marker_specs, rules and defaults
    3. Implement commands()
    4. Register it in the LanguageRegistry
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from polybuild.core.config.loader import BuildConfig
from polybuild.core.models.action import Invocation
from polybuild.core.models.markers import MarkerRole, MarkerSpec, ProjectDescriptor
from polybuild.core.models.params import ParameterTuple
from polybuild.core.models.variant import ToolVariant
from polybuild.core.persistence.stamp_store import STAMP_SUBDIR
from polybuild.core.services.detector import DetectionRule
from polybuild.core.services.markers import scan_markers
from polybuild.core.services.toolchain import ToolchainManager


@dataclass
class AdapterContext:
    """Resolved settings for one ecosystem in one invocation."""

    root: Path
    parameters: ParameterTuple
    output_dir: str
    interpreter: str = ""
    entry: str = ""
    strict_lint: bool = True
    env: dict[str, str] = field(default_factory=dict)

    @property
    def output_path(self) -> Path:
        return self.root / self.output_dir

    def invocation(self, argv: list[str], description: str = "") -> Invocation:
        return Invocation(argv=argv, cwd=str(self.root), env=dict(self.env), description=description)


class LanguageAdapter(ABC):
    """Abstract base class for ecosystem adapters."""

    name: str = ""
    title: str = ""

    # The cached action; ``install`` and ``build`` both resolve to it
    primary_action: str = "install"
    actions: frozenset[str] = frozenset({"install"})

    # ParameterTuple fields that affect this ecosystem's output
    parameter_fields: tuple[str, ...] = ()

    default_output_dir: str = ""
    default_interpreter: str = ""
    default_entry: str = ""

    marker_specs: tuple[MarkerSpec, ...] = ()
    rules: tuple[DetectionRule, ...] = ()
    install_hints: dict[str, str] = {}

    toolchain_manager: ToolchainManager | None = None

    # Warn when installing without a lockfile (mutable mode)
    lockfile_policy: bool = True

    # ── Settings ────────────────────────────────────────────────

    def context(self, root: Path, config: BuildConfig) -> AdapterContext:
        """Resolve defaults < polybuild.yml/CLI settings for this ecosystem."""
        settings = config.settings_for(self.name)
        return AdapterContext(
            root=root.resolve(),
            parameters=config.parameters().project(self.parameter_fields),
            output_dir=settings.output_dir or self.default_output_dir,
            interpreter=settings.interpreter or self.default_interpreter,
            entry=settings.entry or self.default_entry,
            strict_lint=config.strict_lint,
        )

    # ── Detection inputs ────────────────────────────────────────

    def scan(self, ctx: AdapterContext) -> ProjectDescriptor:
        return scan_markers(ctx.root, self.name, self.marker_specs, exclude=(ctx.output_dir,))

    def is_present(self, root: Path) -> bool:
        """Whether ``root`` has any selecting marker for this ecosystem."""
        return any(
            (root / spec.pattern).is_file()
            for spec in self.marker_specs
            if not spec.is_glob
            and spec.role not in (MarkerRole.LINKER_CONFIG, MarkerRole.WORKSPACE_MEMBER)
        )

    # ── Dispatch inputs ─────────────────────────────────────────

    def supports(self, action: str) -> bool:
        return action in self.actions

    def required_binaries(
        self, variant: ToolVariant, action: str, ctx: AdapterContext
    ) -> list[str]:
        """Binaries that must be on PATH before ``action`` can run."""
        return [variant.tool]

    @abstractmethod
    def commands(
        self, variant: ToolVariant, action: str, ctx: AdapterContext
    ) -> list[Invocation]:
        """The invocation sequence for (variant, action)."""

    def clean_commands(self, ctx: AdapterContext) -> list[Invocation]:
        """Tool-side cleanup run before artifact directories are removed."""
        return []

    def clean_binaries(self, ctx: AdapterContext) -> list[str]:
        """Binaries clean_commands() needs; skipped silently when missing."""
        return []

    def artifact_dirs(self, ctx: AdapterContext) -> list[Path]:
        return [ctx.output_path]

    def stamp_dir(self, ctx: AdapterContext) -> Path:
        return ctx.output_path / STAMP_SUBDIR

    def hint_for(self, tool: str) -> str:
        hint = self.install_hints.get(tool, "")
        return f"Install {tool}: {hint}" if hint else ""

    # ── Help ────────────────────────────────────────────────────

    def priority_lines(self) -> list[str]:
        return [f"{i}. {rule.label}" for i, rule in enumerate(self.rules, 1)]

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
