"""
Command dispatch — turn (variant, action, parameters) into processes.

The dispatcher asks the language adapter for the invocation sequence,
enforces the lockfile policy, and runs the steps through the invoker:

- strict lockfile, tool missing, no fallback  -> MissingToolBinaryError
- strict lockfile, tool missing, has fallback -> fallback + FallbackProceeded
- no lockfile                                 -> mutable install + NoLockfileWarning

Steps run in order and stop at the first failure; that failure is the
result. Nothing here writes stamps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from polybuild.adapters.base import Invoker
from polybuild.adapters.languages.base import AdapterContext, LanguageAdapter
from polybuild.core.errors import (
    FallbackProceeded,
    MissingToolBinaryError,
    NoLockfileWarning,
    UnsupportedActionError,
)
from polybuild.core.models.action import ActionResult
from polybuild.core.models.variant import ToolVariant
from polybuild.core.services.detector import fallback_variant

logger = logging.getLogger(__name__)


@dataclass
class Dispatch:
    """What actually ran for one action."""

    variant: ToolVariant
    result: ActionResult
    steps: list[ActionResult] = field(default_factory=list)
    warnings: list[UserWarning] = field(default_factory=list)


class CommandDispatcher:
    """Run one action of one ecosystem through an invoker."""

    def __init__(self, invoker: Invoker):
        self.invoker = invoker

    def resolve_variant(
        self,
        adapter: LanguageAdapter,
        variant: ToolVariant,
        action: str,
        ctx: AdapterContext,
        notices: list[UserWarning],
    ) -> ToolVariant:
        """Apply the missing-binary policy; may swap in the fallback variant."""
        for binary in adapter.required_binaries(variant, action, ctx):
            if self.invoker.is_available(binary):
                continue

            if binary == variant.tool and variant.fallback:
                fallback = fallback_variant(variant, adapter.rules)
                if fallback is not None:
                    notice = FallbackProceeded(
                        f"{variant.lockfile or variant.name} found but {binary} is not "
                        f"installed; falling back to {fallback.name}"
                    )
                    logger.warning("%s", notice)
                    notices.append(notice)
                    return self.resolve_variant(adapter, fallback, action, ctx, notices)

            if variant.strict and binary == variant.tool:
                message = f"{variant.lockfile} found but {binary} not installed"
            else:
                message = f"{binary} not installed (required by {adapter.name} {action})"
            raise MissingToolBinaryError(binary, message, hint=adapter.hint_for(binary))

        return variant

    def run(
        self,
        adapter: LanguageAdapter,
        variant: ToolVariant,
        action: str,
        ctx: AdapterContext,
    ) -> Dispatch:
        """Dispatch ``action`` for ``variant``.

        Raises:
            UnsupportedActionError: The adapter does not offer ``action``.
            MissingToolBinaryError: A required binary is absent and no
                fallback applies.
        """
        if not adapter.supports(action):
            raise UnsupportedActionError(
                f"'{action}' is not available for {adapter.name}",
                hint=f"Available: {', '.join(sorted(adapter.actions))}",
            )

        notices: list[UserWarning] = []
        variant = self.resolve_variant(adapter, variant, action, ctx, notices)

        if action == adapter.primary_action:
            logger.info("[%s] using %s (%s)", action, variant.label, variant.reason)
        if (
            action == adapter.primary_action
            and adapter.lockfile_policy
            and not variant.strict
            and not notices
        ):
            notice = NoLockfileWarning(
                f"No lockfile found for {adapter.name}; installing with {variant.name} "
                "in mutable mode. Consider creating a lockfile."
            )
            logger.warning("%s", notice)
            notices.append(notice)

        invocations = adapter.commands(variant, action, ctx)
        if not invocations:
            raise UnsupportedActionError(f"No command defined for {adapter.name} {action}")

        steps: list[ActionResult] = []
        for invocation in invocations:
            logger.info("[%s] %s", action, invocation.command_line)
            step = self.invoker.invoke(invocation, action=action)
            steps.append(step)
            if not step.ok:
                logger.debug("[%s] step failed with exit %d", action, step.exit_code)
                return Dispatch(variant=variant, result=step, steps=steps, warnings=notices)

        result = ActionResult.success(
            action,
            output="\n".join(s.output for s in steps if s.output),
            command=" && ".join(s.command for s in steps),
            duration_ms=sum(s.duration_ms for s in steps),
            metadata={"variant": variant.name, "steps": len(steps)},
        )
        return Dispatch(variant=variant, result=result, steps=steps, warnings=notices)
