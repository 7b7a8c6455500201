"""
Subprocess invoker — run external tools for real.

By default the child inherits stdout/stderr so package manager and
compiler output reaches the terminal unmodified. With ``capture=True``
output is collected into the result instead (used by ``--json`` and by
tests).

There is no timeout: cancellation is left to the tool's own signal
handling (Ctrl-C reaches the child through the process group).
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time

from polybuild.adapters.base import Invoker
from polybuild.core.models.action import ActionResult, Invocation

logger = logging.getLogger(__name__)

# Conventional shell statuses for "not found" / "not executable"
_EXIT_NOT_FOUND = 127
_EXIT_NOT_EXECUTABLE = 126


class SubprocessInvoker(Invoker):
    """Run invocations with ``subprocess.run``."""

    def __init__(self, capture: bool = False):
        self._capture = capture

    @property
    def name(self) -> str:
        return "subprocess"

    def which(self, program: str) -> str | None:
        return shutil.which(program)

    def invoke(self, invocation: Invocation, action: str = "") -> ActionResult:
        command = invocation.command_line
        action = action or invocation.description or invocation.program

        env = os.environ.copy()
        env.update(invocation.env)

        logger.debug("Executing: %s (cwd=%s)", command, invocation.cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                invocation.argv,
                cwd=invocation.cwd,
                env=env,
                capture_output=self._capture,
                text=True,
            )
        except FileNotFoundError as e:
            return ActionResult.failure(
                action=action,
                error=f"Command not found: {invocation.program} ({e})",
                exit_code=_EXIT_NOT_FOUND,
                command=command,
            )
        except OSError as e:
            return ActionResult.failure(
                action=action,
                error=f"Cannot execute {invocation.program}: {e}",
                exit_code=_EXIT_NOT_EXECUTABLE,
                command=command,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = (result.stdout or "").strip()
        stderr = (result.stderr or "").strip()

        if result.returncode == 0:
            return ActionResult.success(
                action=action,
                output=output,
                command=command,
                duration_ms=elapsed_ms,
                metadata={"stderr": stderr} if stderr else {},
            )

        return ActionResult.failure(
            action=action,
            error=stderr or f"Command exited with code {result.returncode}",
            exit_code=result.returncode,
            output=output,
            command=command,
            duration_ms=elapsed_ms,
        )
