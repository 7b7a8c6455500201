"""
Node.js adapter — pnpm / yarn / bun / npm.

Priority: pnpm-lock.yaml > yarn.lock (linker mode from .yarnrc.yml)
> bun.lockb/bun.lock > package-lock.json > bare package.json (mutable
``npm install``). A lockfile is a declaration of intent: when its tool
is missing the install fails instead of trying another manager.
"""

from __future__ import annotations

from polybuild.adapters.languages.base import AdapterContext, LanguageAdapter
from polybuild.core.models.action import Invocation
from polybuild.core.models.markers import MarkerRole, MarkerSpec
from polybuild.core.models.variant import ToolVariant
from polybuild.core.services.detector import DetectionRule

_FROZEN = {
    "pnpm": ["pnpm", "install", "--frozen-lockfile"],
    "yarn": ["yarn", "install", "--frozen-lockfile"],
    "bun": ["bun", "install", "--frozen-lockfile"],
    "npm-strict": ["npm", "ci"],
    "npm-loose": ["npm", "install"],
}


class NodeAdapter(LanguageAdapter):
    """Node.js dependency management."""

    name = "node"
    title = "Node.js"

    primary_action = "install"
    actions = frozenset({"install", "run", "test"})
    parameter_fields = ()

    default_output_dir = "node_modules"
    default_interpreter = "node"
    default_entry = "index.js"

    marker_specs = (
        MarkerSpec(pattern="package.json", role=MarkerRole.MANIFEST),
        MarkerSpec(pattern="package-lock.json", role=MarkerRole.LOCKFILE_STRICT),
        MarkerSpec(pattern="yarn.lock", role=MarkerRole.LOCKFILE_STRICT),
        MarkerSpec(pattern="pnpm-lock.yaml", role=MarkerRole.LOCKFILE_STRICT),
        MarkerSpec(pattern="bun.lockb", role=MarkerRole.LOCKFILE_STRICT),
        MarkerSpec(pattern="bun.lock", role=MarkerRole.LOCKFILE_STRICT),
        MarkerSpec(pattern=".yarnrc.yml", role=MarkerRole.LINKER_CONFIG),
    )

    rules = (
        DetectionRule("pnpm", "pnpm", markers=("pnpm-lock.yaml",), strict=True),
        DetectionRule("yarn", "yarn", markers=("yarn.lock",), strict=True, reads_linker=True),
        DetectionRule("bun", "bun", markers=("bun.lockb", "bun.lock"), strict=True),
        DetectionRule("npm-strict", "npm", markers=("package-lock.json",), strict=True),
        DetectionRule("npm-loose", "npm", markers=("package.json",)),
    )

    install_hints = {
        "pnpm": "npm install -g pnpm",
        "yarn": "npm install -g yarn",
        "bun": "curl -fsSL https://bun.sh/install | bash",
        "npm": "https://nodejs.org/en/download",
        "node": "https://nodejs.org/en/download",
    }

    def required_binaries(
        self, variant: ToolVariant, action: str, ctx: AdapterContext
    ) -> list[str]:
        if action == "run":
            return [ctx.interpreter]
        return [variant.tool]

    def commands(
        self, variant: ToolVariant, action: str, ctx: AdapterContext
    ) -> list[Invocation]:
        if action == "install":
            return [ctx.invocation(list(_FROZEN[variant.name]), f"{variant.name} install")]
        if action == "run":
            return [ctx.invocation([ctx.interpreter, ctx.entry], f"run {ctx.entry}")]
        if action == "test":
            return [ctx.invocation([variant.tool, "run", "test"], f"{variant.tool} test")]
        return []
