"""
Error taxonomy.

Fatal conditions found before dispatch (detection, missing binaries,
toolchain installs) are raised as ``PolybuildError`` subclasses and end
the invocation. A failing external tool is raised as
``ExternalToolFailure`` with its exit code and output attached verbatim.

Non-fatal conditions are ``UserWarning`` subclasses: they are logged and
collected on the verb result, never raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from polybuild.core.models.action import ActionResult


class PolybuildError(Exception):
    """Base class for fatal polybuild errors."""

    exit_code = 1

    def __init__(self, message: str, hint: str = ""):
        super().__init__(message)
        self.hint = hint


class MissingManifestError(PolybuildError):
    """No recognized marker of any kind exists in the project root."""

    exit_code = 2


class MissingToolBinaryError(PolybuildError):
    """A lockfile (or toolchain) names a tool whose binary is not installed."""

    def __init__(self, tool: str, message: str, hint: str = ""):
        super().__init__(message, hint)
        self.tool = tool


class UnsupportedActionError(PolybuildError):
    """The requested verb is not offered by the ecosystem."""

    exit_code = 2


class ToolchainInstallFailure(PolybuildError):
    """The toolchain manager failed to install a toolchain or target."""

    def __init__(self, message: str, result: ActionResult, hint: str = ""):
        super().__init__(message, hint)
        self.result = result


class UnsafeCleanError(PolybuildError):
    """An artifact directory resolves to the project root or outside it."""


class StampWriteError(PolybuildError):
    """A stamp could not be persisted after the action succeeded."""


class ExternalToolFailure(PolybuildError):
    """The dispatched process exited non-zero.

    ``exit_code`` is the tool's own status so the CLI can forward it.
    """

    def __init__(self, result: ActionResult):
        super().__init__(
            result.error or f"{result.command or result.action} failed "
            f"(exit {result.exit_code})"
        )
        self.result = result
        self.exit_code = result.exit_code or 1


class NoLockfileWarning(UserWarning):
    """Install proceeds in mutable mode because no lockfile exists."""


class FallbackProceeded(UserWarning):
    """A lockfile's tool is missing; a manifest-based fallback ran instead."""
