"""
Invocation and ActionResult models — the execution contract.

Invocations describe an external process to start. ActionResults
describe what happened. This is the I/O contract between the
dispatcher and invokers: the dispatcher sends Invocations, invokers
return ActionResults. Never exceptions.
"""

from __future__ import annotations

import shlex
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Invocation(BaseModel):
    """One external process to run.

    ``argv`` is passed to the process as-is (no shell).
    ``env`` holds overrides layered on top of the inherited environment.
    """

    argv: list[str]
    cwd: str = "."
    env: dict[str, str] = Field(default_factory=dict)
    description: str = ""

    @property
    def program(self) -> str:
        return self.argv[0] if self.argv else ""

    @property
    def command_line(self) -> str:
        """Shell-quoted rendering, for logs and receipts."""
        return shlex.join(self.argv)


class ActionResult(BaseModel):
    """Outcome of running one action.

    The external tool's exit status and diagnostic text are kept
    verbatim. An invoker NEVER raises for a failing process; the
    failure is captured here.
    """

    action: str
    status: Literal["ok", "skipped", "failed"] = "ok"
    exit_code: int = 0

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    command: str = ""
    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the action succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the action failed."""
        return self.status == "failed"

    @classmethod
    def success(
        cls,
        action: str,
        output: str = "",
        **kwargs: Any,
    ) -> ActionResult:
        """Create a success result."""
        return cls(action=action, status="ok", exit_code=0, output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        action: str,
        error: str,
        exit_code: int = 1,
        **kwargs: Any,
    ) -> ActionResult:
        """Create a failure result."""
        return cls(
            action=action,
            status="failed",
            exit_code=exit_code,
            error=error,
            **kwargs,
        )

    @classmethod
    def skip(
        cls,
        action: str,
        reason: str = "",
        **kwargs: Any,
    ) -> ActionResult:
        """Create a skip result."""
        return cls(action=action, status="skipped", output=reason, **kwargs)
