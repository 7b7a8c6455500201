"""
Mock invoker — test double for every external process.

Used by ``--mock`` and by the test suite to simulate package managers
and toolchain managers without touching the machine. Configurable to
report binaries as missing and to fail specific commands.
"""

from __future__ import annotations

from collections.abc import Iterable

from polybuild.adapters.base import Invoker
from polybuild.core.models.action import ActionResult, Invocation


class MockInvoker(Invoker):
    """Universal mock invoker.

    By default every binary is installed and every command succeeds.
    Failures are matched by substring against the rendered command line.
    """

    def __init__(
        self,
        missing: Iterable[str] = (),
        default_output: str = "[mock] executed",
    ):
        self._missing: set[str] = set(missing)
        self._default_output = default_output
        self._failures: dict[str, tuple[int, str]] = {}
        self._call_log: list[Invocation] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[Invocation]:
        """All invocations this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def commands(self) -> list[str]:
        """Rendered command lines, in call order."""
        return [inv.command_line for inv in self._call_log]

    def set_missing(self, *programs: str) -> None:
        self._missing.update(programs)

    def set_installed(self, *programs: str) -> None:
        self._missing.difference_update(programs)

    def set_failure(self, match: str, exit_code: int = 1, error: str = "Mock failure") -> None:
        """Make every command line containing ``match`` fail."""
        self._failures[match] = (exit_code, error)

    def clear_failures(self) -> None:
        self._failures.clear()

    def which(self, program: str) -> str | None:
        if program in self._missing:
            return None
        return f"/mock/bin/{program}"

    def invoke(self, invocation: Invocation, action: str = "") -> ActionResult:
        self._call_log.append(invocation)
        command = invocation.command_line
        action = action or invocation.description or invocation.program

        for match, (exit_code, error) in self._failures.items():
            if match in command:
                return ActionResult.failure(
                    action=action,
                    error=error,
                    exit_code=exit_code,
                    command=command,
                    metadata={"mock": True},
                )

        return ActionResult.success(
            action=action,
            output=self._default_output,
            command=command,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log and configured failures."""
        self._call_log.clear()
        self._failures.clear()
