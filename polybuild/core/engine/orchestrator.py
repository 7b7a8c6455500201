"""
Orchestrator — the verb-level state machine for one ecosystem.

Flow of the cached (primary) action:

    UNINITIALIZED → detect → TOOL_RESOLVED → fingerprint + stamp check
        → FRESH   (nothing runs)
        → STALE   → toolchain ensure (switchable ecosystems only)
                  → dispatch → DONE (stamp written) | FAILED (stamp untouched)

``run``/``test``/``check`` and the lint verbs go through the primary
path first and then dispatch their own command; they never write a
stamp. ``clean`` drops every stamp and artifact directory and returns
to UNINITIALIZED. ``reinstall`` is clean followed by the primary path
with the freshness check bypassed.

Everything is sequential and blocking; there is no retry, timeout or
lock around stamp writes.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from polybuild.adapters.base import Invoker
from polybuild.adapters.languages.base import AdapterContext, LanguageAdapter
from polybuild.core.errors import (
    ExternalToolFailure,
    PolybuildError,
    UnsafeCleanError,
    UnsupportedActionError,
)
from polybuild.core.models.action import ActionResult
from polybuild.core.models.markers import ProjectDescriptor
from polybuild.core.models.variant import ToolVariant
from polybuild.core.persistence.stamp_store import TOOLCHAIN_SUBDIR, StampStore, action_key
from polybuild.core.services.detector import detect
from polybuild.core.services.dispatcher import CommandDispatcher
from polybuild.core.services.fingerprint import compute_fingerprint
from polybuild.core.services.toolchain import ToolchainResolver

logger = logging.getLogger(__name__)

# Verbs that resolve to the adapter's cached action
PRIMARY_VERBS = ("install", "build")


class State(str, Enum):
    UNINITIALIZED = "uninitialized"
    TOOL_RESOLVED = "tool_resolved"
    FRESH = "fresh"
    STALE = "stale"
    DONE = "done"
    FAILED = "failed"


@dataclass
class VerbResult:
    """Outcome of one verb on one ecosystem."""

    ecosystem: str
    verb: str
    state: State = State.UNINITIALIZED
    variant: ToolVariant | None = None
    action_key: str = ""
    fingerprint: str = ""
    fresh: bool = False
    results: list[ActionResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state != State.FAILED and not any(r.failed for r in self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ecosystem": self.ecosystem,
            "verb": self.verb,
            "state": self.state.value,
            "ok": self.ok,
            "variant": self.variant.model_dump(mode="json") if self.variant else None,
            "action_key": self.action_key,
            "fingerprint": self.fingerprint,
            "fresh": self.fresh,
            "results": [r.model_dump(mode="json") for r in self.results],
            "warnings": self.warnings,
            "removed": self.removed,
        }


class Orchestrator:
    """Sequence detection, caching, toolchain and dispatch for one ecosystem."""

    def __init__(
        self,
        adapter: LanguageAdapter,
        ctx: AdapterContext,
        invoker: Invoker,
        dispatcher: CommandDispatcher | None = None,
    ):
        self.adapter = adapter
        self.ctx = ctx
        self.invoker = invoker
        self.dispatcher = dispatcher or CommandDispatcher(invoker)
        self.store = StampStore(adapter.stamp_dir(ctx))
        self.toolchain_store = StampStore(ctx.root / TOOLCHAIN_SUBDIR)

        self.state = State.UNINITIALIZED
        self.history: list[State] = [self.state]
        self.descriptor: ProjectDescriptor | None = None
        self.variant: ToolVariant | None = None

    # ── State ───────────────────────────────────────────────────

    def _set(self, state: State) -> None:
        logger.debug("%s: %s → %s", self.adapter.name, self.state.value, state.value)
        self.state = state
        self.history.append(state)

    @property
    def primary_key(self) -> str:
        return action_key(self.adapter.primary_action, self.ctx.parameters)

    # ── Verbs ───────────────────────────────────────────────────

    def perform(self, verb: str) -> VerbResult:
        """Run any verb by name."""
        try:
            if verb in PRIMARY_VERBS:
                return self.install()
            if verb == "clean":
                return self.clean()
            if verb == "reinstall":
                return self.reinstall()
            if verb == "toolchain":
                return self.toolchain()
            return self.run_action(verb)
        except PolybuildError:
            if self.state != State.FAILED:
                self._set(State.FAILED)
            raise

    def resolve(self) -> ToolVariant:
        """Scan markers and pick the tool variant."""
        self.descriptor = self.adapter.scan(self.ctx)
        self.variant = detect(self.descriptor, self.adapter.rules, self.ctx.parameters)
        self._set(State.TOOL_RESOLVED)
        return self.variant

    def fingerprint(self) -> str:
        if self.descriptor is None:
            self.resolve()
        assert self.descriptor is not None
        return compute_fingerprint(self.descriptor, self.ctx.parameters)

    def install(self, force: bool = False, verb: str | None = None) -> VerbResult:
        """The cached primary action (``install`` or ``build``).

        Args:
            force: Skip the freshness check (reinstall).
            verb: Verb name to report; defaults to the primary action.

        Raises:
            ExternalToolFailure: The dispatched tool failed.
        """
        primary = self.adapter.primary_action
        variant = self.resolve()
        key = self.primary_key
        fingerprint = self.fingerprint()

        result = VerbResult(
            ecosystem=self.adapter.name,
            verb=verb or primary,
            variant=variant,
            action_key=key,
            fingerprint=fingerprint,
        )

        if not force and self.store.is_fresh(key, fingerprint):
            logger.info("[%s] %s is up to date (%s)", primary, self.adapter.name, variant.label)
            self._set(State.FRESH)
            result.fresh = True
            result.state = self.state
            result.results.append(ActionResult.skip(primary, reason="up to date"))
            return result

        self._set(State.STALE)

        if self.adapter.toolchain_manager is not None:
            result.results.append(self._ensure_toolchain())

        dispatch = self.dispatcher.run(self.adapter, variant, primary, self.ctx)
        result.variant = dispatch.variant
        result.results.extend(dispatch.steps)
        result.warnings.extend(str(w) for w in dispatch.warnings)

        if not dispatch.result.ok:
            self._set(State.FAILED)
            result.state = self.state
            raise ExternalToolFailure(dispatch.result)

        self.store.write(
            key,
            fingerprint,
            action=primary,
            parameters=self.ctx.parameters.model_dump(mode="json"),
            variant=dispatch.variant.name,
        )
        self._set(State.DONE)
        result.state = self.state
        return result

    build = install

    def run_action(self, verb: str) -> VerbResult:
        """An uncached verb: primary path first, then its own dispatch."""
        if not self.adapter.supports(verb) or verb == self.adapter.primary_action:
            raise UnsupportedActionError(
                f"'{verb}' is not available for {self.adapter.name}",
                hint=f"Available: {', '.join(sorted(self.adapter.actions))}",
            )

        primary = self.install()
        assert self.variant is not None

        dispatch = self.dispatcher.run(self.adapter, self.variant, verb, self.ctx)
        result = VerbResult(
            ecosystem=self.adapter.name,
            verb=verb,
            variant=primary.variant,
            action_key=primary.action_key,
            fingerprint=primary.fingerprint,
            fresh=primary.fresh,
            results=primary.results + dispatch.steps,
            warnings=primary.warnings + [str(w) for w in dispatch.warnings],
        )

        if not dispatch.result.ok:
            self._set(State.FAILED)
            result.state = self.state
            raise ExternalToolFailure(dispatch.result)

        self._set(State.DONE)
        result.state = self.state
        return result

    def toolchain(self) -> VerbResult:
        """Only ensure the toolchain (and target) is installed."""
        if self.adapter.toolchain_manager is None:
            raise UnsupportedActionError(
                f"{self.adapter.name} has no switchable toolchain"
            )
        result = VerbResult(ecosystem=self.adapter.name, verb="toolchain")
        result.results.append(self._ensure_toolchain())
        self._set(State.DONE)
        result.state = self.state
        return result

    def clean(self) -> VerbResult:
        """Remove every stamp and artifact directory of this ecosystem."""
        directories = self.adapter.artifact_dirs(self.ctx)
        for directory in directories:
            self._check_removable(directory)

        result = VerbResult(ecosystem=self.adapter.name, verb="clean")
        logger.info("[clean] Removing %s build artifacts...", self.adapter.name)

        cleared = self.store.clear()
        if self.adapter.toolchain_manager is not None:
            cleared += self.toolchain_store.clear()
        logger.debug("[clean] %d stamp(s) cleared", cleared)

        failure: ActionResult | None = None
        if all(self.invoker.is_available(b) for b in self.adapter.clean_binaries(self.ctx)):
            for invocation in self.adapter.clean_commands(self.ctx):
                logger.info("[clean] %s", invocation.command_line)
                step = self.invoker.invoke(invocation, action="clean")
                result.results.append(step)
                if not step.ok:
                    failure = step
                    break

        for directory in directories:
            if directory.exists():
                shutil.rmtree(directory)
                result.removed.append(str(directory))
                logger.info("[clean] removed %s", directory)

        state_dir = self.toolchain_store.directory.parent
        if state_dir.is_dir() and not any(state_dir.iterdir()):
            state_dir.rmdir()

        self.descriptor = None
        self.variant = None
        self._set(State.UNINITIALIZED)
        result.state = self.state

        if failure is not None:
            raise ExternalToolFailure(failure)
        return result

    def reinstall(self) -> VerbResult:
        """clean, then the primary path with the freshness check bypassed."""
        cleaned = self.clean()
        result = self.install(force=True, verb="reinstall")
        result.results = cleaned.results + result.results
        result.removed = cleaned.removed
        return result

    # ── Introspection ───────────────────────────────────────────

    def status(self) -> dict[str, Any]:
        """Detection, fingerprint and freshness without side effects."""
        info: dict[str, Any] = {
            "ecosystem": self.adapter.name,
            "output_dir": str(self.ctx.output_path),
            "stamp_dir": str(self.store.directory),
            "action_key": self.primary_key,
            "stamps": [r.model_dump(mode="json") for r in self.store.records()],
        }
        try:
            variant = self.resolve()
        except PolybuildError as e:
            info["error"] = str(e)
            return info

        assert self.descriptor is not None
        fingerprint = self.fingerprint()
        info.update(
            {
                "variant": variant.model_dump(mode="json"),
                "markers": [m.model_dump(mode="json") for m in self.descriptor.markers],
                "fingerprint": fingerprint,
                "fresh": self.store.is_fresh(self.primary_key, fingerprint),
            }
        )
        if self.adapter.toolchain_manager is not None:
            resolver = self._resolver()
            toolchain = self.ctx.parameters.toolchain or "stable"
            info["toolchain"] = {
                "id": toolchain,
                "target_arch": self.ctx.parameters.target_arch,
                "satisfied": resolver.is_satisfied(toolchain, self.ctx.parameters.target_arch),
            }
        return info

    # ── Helpers ─────────────────────────────────────────────────

    def _resolver(self) -> ToolchainResolver:
        assert self.adapter.toolchain_manager is not None
        return ToolchainResolver(
            self.invoker,
            self.adapter.toolchain_manager,
            self.toolchain_store,
            cwd=self.ctx.root,
        )

    def _check_removable(self, directory: Path) -> None:
        root = self.ctx.root.resolve()
        target = directory.resolve()
        if root not in target.parents:
            raise UnsafeCleanError(
                f"Refusing to remove {directory}: not inside {root}",
                hint="Point output_dir at a subdirectory of the project",
            )

    def _ensure_toolchain(self) -> ActionResult:
        params = self.ctx.parameters
        return self._resolver().ensure(params.toolchain or "stable", params.target_arch)
