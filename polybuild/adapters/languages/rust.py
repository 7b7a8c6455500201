"""
Rust adapter — cargo driven through a rustup toolchain.

The build tool is always cargo; "detection" resolves the requested
toolchain and cross target and lists workspace member manifests so
that editing a member's Cargo.toml invalidates the build stamp.
"""

from __future__ import annotations

from pathlib import Path

from polybuild.adapters.languages.base import AdapterContext, LanguageAdapter
from polybuild.core.config.loader import BuildConfig
from polybuild.core.models.action import Invocation
from polybuild.core.models.markers import MarkerRole, MarkerSpec
from polybuild.core.models.params import PARAMETER_FIELDS
from polybuild.core.models.variant import ToolVariant
from polybuild.core.services.detector import DetectionRule
from polybuild.core.services.toolchain import ToolchainManager

DEFAULT_TOOLCHAIN = "stable"
DEFAULT_TARGET_DIR = "target"


class RustAdapter(LanguageAdapter):
    """Rust builds, tests and lints with cargo."""

    name = "rust"
    title = "Rust"

    primary_action = "build"
    actions = frozenset({
        "build", "run", "test", "check", "clippy", "clippy-fix",
        "fmt", "fmt-check", "nextest",
    })
    parameter_fields = PARAMETER_FIELDS

    default_output_dir = DEFAULT_TARGET_DIR

    marker_specs = (
        MarkerSpec(pattern="Cargo.toml", role=MarkerRole.MANIFEST),
        MarkerSpec(pattern="Cargo.lock", role=MarkerRole.LOCKFILE_STRICT),
        MarkerSpec(pattern="*/Cargo.toml", role=MarkerRole.WORKSPACE_MEMBER),
        MarkerSpec(pattern="*/*/Cargo.toml", role=MarkerRole.WORKSPACE_MEMBER),
    )

    rules = (
        DetectionRule("cargo", "cargo", markers=("Cargo.toml",), switchable_toolchain=True),
    )

    install_hints = {
        "cargo": "rustup toolchain install stable",
        "cargo-nextest": "cargo install cargo-nextest --locked",
    }

    lockfile_policy = False

    toolchain_manager = ToolchainManager(
        binary="rustup",
        hint="Install rustup: curl --proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs | sh",
        install=["toolchain", "install", "{toolchain}"],
        add_target=["target", "add", "{target}", "--toolchain", "{toolchain}"],
    )

    def context(self, root: Path, config: BuildConfig) -> AdapterContext:
        ctx = super().context(root, config)
        if ctx.output_dir != DEFAULT_TARGET_DIR:
            ctx.env["CARGO_TARGET_DIR"] = str(ctx.output_path)
        return ctx

    def required_binaries(
        self, variant: ToolVariant, action: str, ctx: AdapterContext
    ) -> list[str]:
        if action == "nextest":
            return ["cargo", "cargo-nextest"]
        return ["cargo"]

    def _cargo(self, ctx: AdapterContext) -> list[str]:
        return ["cargo", f"+{ctx.parameters.toolchain or DEFAULT_TOOLCHAIN}"]

    def _flags(
        self,
        ctx: AdapterContext,
        profile: bool = True,
        features: bool = True,
        target: bool = True,
    ) -> list[str]:
        params = ctx.parameters
        flags: list[str] = []
        if profile and params.is_release:
            flags.append("--release")
        if features and params.features:
            flags += ["--features", ",".join(params.features)]
        if target and params.target_arch:
            flags += ["--target", params.target_arch]
        return flags

    def commands(
        self, variant: ToolVariant, action: str, ctx: AdapterContext
    ) -> list[Invocation]:
        cargo = self._cargo(ctx)

        if action == "build":
            argv = cargo + ["build"] + self._flags(ctx)
        elif action == "run":
            argv = cargo + ["run"] + self._flags(ctx)
        elif action == "test":
            argv = cargo + ["test"] + self._flags(ctx, target=False)
        elif action == "nextest":
            argv = cargo + ["nextest", "run"] + self._flags(ctx, target=False)
        elif action == "check":
            argv = cargo + ["check"] + self._flags(ctx, profile=False, target=False)
        elif action == "clippy":
            argv = cargo + ["clippy"] + self._flags(ctx, profile=False, target=False)
            if ctx.strict_lint:
                argv += ["--", "-D", "warnings"]
        elif action == "clippy-fix":
            argv = (
                cargo
                + ["clippy", "--fix", "--allow-dirty", "--allow-staged"]
                + self._flags(ctx, profile=False, target=False)
            )
        elif action == "fmt":
            argv = cargo + ["fmt", "--all"]
        elif action == "fmt-check":
            argv = cargo + ["fmt", "--all", "--", "--check"]
        else:
            return []

        return [ctx.invocation(argv, f"cargo {action}")]

    def clean_commands(self, ctx: AdapterContext) -> list[Invocation]:
        return [ctx.invocation(self._cargo(ctx) + ["clean"], "cargo clean")]

    def clean_binaries(self, ctx: AdapterContext) -> list[str]:
        return ["cargo"]
