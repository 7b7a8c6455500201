"""
Tool detection — pick exactly one tool variant from marker files.

Each ecosystem supplies a fixed, ordered tuple of DetectionRules. The
rules are evaluated top to bottom and the first one whose marker is
present wins; nothing after it is consulted. The result depends only
on the ProjectDescriptor (and the requested toolchain/target for
switchable ecosystems), never on time or directory listing order.

Pure logic — reads files, no other side effects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from polybuild.core.errors import MissingManifestError
from polybuild.core.models.markers import MarkerRole, ProjectDescriptor
from polybuild.core.models.params import ParameterTuple
from polybuild.core.models.variant import ToolVariant

logger = logging.getLogger(__name__)

# Yarn linker used when .yarnrc.yml is absent, unparsable or silent
DEFAULT_YARN_LINKER = "pnp"
YARN_LINKER_KEY = "nodeLinker"


@dataclass(frozen=True)
class DetectionRule:
    """One entry of an ecosystem's priority list.

    The rule matches when any of ``markers`` is present, or, failing
    that, when any marker with one of ``roles`` is present.
    """

    variant: str
    tool: str
    markers: tuple[str, ...] = ()
    roles: tuple[MarkerRole, ...] = ()
    strict: bool = False
    fallback: str | None = None
    reads_linker: bool = False
    switchable_toolchain: bool = False

    def match(self, descriptor: ProjectDescriptor) -> str | None:
        """Return the marker path that satisfies this rule, if any."""
        for path in self.markers:
            if descriptor.has(path):
                return path
        for role in self.roles:
            found = descriptor.by_role(role)
            if found:
                return found[0].path
        return None

    @property
    def label(self) -> str:
        signals = list(self.markers) + [r.value for r in self.roles]
        return f"{self.variant} ({', '.join(signals)})"


def detect(
    descriptor: ProjectDescriptor,
    rules: tuple[DetectionRule, ...],
    parameters: ParameterTuple | None = None,
) -> ToolVariant:
    """Select the single applicable tool variant.

    Args:
        descriptor: Existence-filtered markers of the project root.
        rules: The ecosystem's priority list, highest first.
        parameters: Requested toolchain/target for switchable toolchains.

    Returns:
        The ToolVariant of the first matching rule.

    Raises:
        MissingManifestError: If no rule matches.
    """
    for rule in rules:
        marker = rule.match(descriptor)
        if marker is None:
            continue

        variant = ToolVariant(
            ecosystem=descriptor.ecosystem,
            name=rule.variant,
            tool=rule.tool,
            lockfile=marker if rule.strict else None,
            strict=rule.strict,
            fallback=rule.fallback,
            reason=f"{marker} detected",
        )

        if rule.reads_linker:
            variant.linker = read_linker_mode(descriptor)

        if rule.switchable_toolchain:
            params = parameters or ParameterTuple()
            variant.toolchain = params.toolchain
            variant.target_arch = params.target_arch
            variant.workspace_members = [
                m.path for m in descriptor.by_role(MarkerRole.WORKSPACE_MEMBER)
            ]

        logger.debug(
            "Detected %s for %s (%s)", variant.label, descriptor.ecosystem, variant.reason
        )
        return variant

    raise MissingManifestError(
        f"No {descriptor.ecosystem} manifest found in {descriptor.root}",
        hint="Expected one of: " + ", ".join(descriptor.candidates),
    )


def read_linker_mode(descriptor: ProjectDescriptor) -> str:
    """Yarn linker mode from the linker-config marker.

    Absent file, unparsable YAML, a non-mapping document or a missing
    ``nodeLinker`` key all mean the default ``pnp``. Otherwise the
    declared value is returned as-is.
    """
    configs = descriptor.by_role(MarkerRole.LINKER_CONFIG)
    if not configs:
        return DEFAULT_YARN_LINKER

    path = Path(descriptor.root) / configs[0].path
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.debug("Cannot parse %s (%s) — using %s", path, e, DEFAULT_YARN_LINKER)
        return DEFAULT_YARN_LINKER

    if not isinstance(data, dict):
        return DEFAULT_YARN_LINKER

    value = data.get(YARN_LINKER_KEY)
    if value is None or not str(value).strip():
        return DEFAULT_YARN_LINKER
    return str(value).strip()


def fallback_variant(
    variant: ToolVariant, rules: tuple[DetectionRule, ...]
) -> ToolVariant | None:
    """The variant named by ``variant.fallback``, or None if it has none."""
    if not variant.fallback:
        return None
    for rule in rules:
        if rule.variant == variant.fallback:
            return variant.model_copy(
                update={
                    "name": rule.variant,
                    "tool": rule.tool,
                    "lockfile": None,
                    "strict": False,
                    "fallback": None,
                    "reason": f"{variant.tool} not installed; falling back from {variant.name}",
                }
            )
    return None
