"""
Toolchain resolution — make sure a switchable toolchain is installed.

Only used by ecosystems whose adapter declares a ToolchainManager
(rust/rustup). A successful ensure is stamped per toolchain id (and
target); once stamped, later invocations skip the manager entirely.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel

from polybuild.adapters.base import Invoker
from polybuild.core.errors import MissingToolBinaryError, ToolchainInstallFailure
from polybuild.core.models.action import ActionResult, Invocation
from polybuild.core.models.params import ParameterTuple
from polybuild.core.persistence.stamp_store import StampStore, action_key
from polybuild.core.services.fingerprint import parameters_fingerprint

logger = logging.getLogger(__name__)

TOOLCHAIN_ACTION = "toolchain"


class ToolchainManager(BaseModel):
    """How to drive a toolchain manager binary.

    Argument templates use ``{toolchain}`` and ``{target}`` placeholders.
    """

    binary: str
    hint: str = ""
    install: list[str]
    add_target: list[str]

    def install_argv(self, toolchain: str) -> list[str]:
        return [self.binary] + [a.format(toolchain=toolchain) for a in self.install]

    def add_target_argv(self, toolchain: str, target: str) -> list[str]:
        return [self.binary] + [
            a.format(toolchain=toolchain, target=target) for a in self.add_target
        ]


class ToolchainResolver:
    """Ensure a toolchain (and optional cross target) is present."""

    def __init__(
        self,
        invoker: Invoker,
        manager: ToolchainManager,
        store: StampStore,
        cwd: Path | None = None,
    ):
        self.invoker = invoker
        self.manager = manager
        self.store = store
        self.cwd = cwd or Path.cwd()

    def stamp_key(self, toolchain: str, target_arch: str | None = None) -> str:
        return action_key(
            TOOLCHAIN_ACTION,
            ParameterTuple(toolchain=toolchain, target_arch=target_arch),
        )

    def is_satisfied(self, toolchain: str, target_arch: str | None = None) -> bool:
        params = ParameterTuple(toolchain=toolchain, target_arch=target_arch)
        return self.store.is_fresh(
            self.stamp_key(toolchain, target_arch), parameters_fingerprint(params)
        )

    def ensure(self, toolchain: str, target_arch: str | None = None) -> ActionResult:
        """Install/update ``toolchain`` and register ``target_arch``.

        Idempotent: an already-stamped toolchain returns a skip result
        without starting any process.

        Raises:
            MissingToolBinaryError: The manager binary is not installed.
            ToolchainInstallFailure: The manager failed.
        """
        params = ParameterTuple(toolchain=toolchain, target_arch=target_arch)
        key = self.stamp_key(toolchain, target_arch)
        fingerprint = parameters_fingerprint(params)
        label = f"{toolchain}{f' ({target_arch})' if target_arch else ''}"

        if self.store.is_fresh(key, fingerprint):
            logger.debug("[toolchain] %s already satisfied", label)
            return ActionResult.skip(TOOLCHAIN_ACTION, reason=f"toolchain {label} up to date")

        logger.info("[toolchain] Checking for %s...", self.manager.binary)
        if not self.invoker.is_available(self.manager.binary):
            raise MissingToolBinaryError(
                self.manager.binary,
                f"{self.manager.binary} not found",
                hint=self.manager.hint,
            )

        logger.info("[toolchain] Installing/updating toolchain: %s", toolchain)
        result = self._invoke(self.manager.install_argv(toolchain), f"install toolchain {toolchain}")
        if not result.ok:
            raise ToolchainInstallFailure(
                f"Failed to install toolchain '{toolchain}' (exit {result.exit_code})",
                result,
            )

        if target_arch:
            logger.info("[toolchain] Installing cross-compilation target: %s", target_arch)
            result = self._invoke(
                self.manager.add_target_argv(toolchain, target_arch),
                f"add target {target_arch}",
            )
            if not result.ok:
                raise ToolchainInstallFailure(
                    f"Failed to add target '{target_arch}' to toolchain '{toolchain}' "
                    f"(exit {result.exit_code})",
                    result,
                )

        self.store.write(
            key,
            fingerprint,
            action=TOOLCHAIN_ACTION,
            parameters=params.model_dump(mode="json"),
        )
        return ActionResult.success(TOOLCHAIN_ACTION, output=f"toolchain {label} ready")

    def _invoke(self, argv: list[str], description: str) -> ActionResult:
        invocation = Invocation(argv=argv, cwd=str(self.cwd), description=description)
        return self.invoker.invoke(invocation, action=TOOLCHAIN_ACTION)
