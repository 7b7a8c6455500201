"""
Invoker base — the contract between the core and external processes.

Everything that starts a process (the command dispatcher, the
toolchain resolver, clean) goes through an Invoker. Swapping in the
MockInvoker is enough to exercise every orchestrator transition
without a real package manager on the machine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from polybuild.core.models.action import ActionResult, Invocation


class Invoker(ABC):
    """Abstract base class for external tool invokers.

    Invokers run processes and return results.
    They NEVER raise for a failing process; the exit code and
    diagnostic text are captured in the ActionResult.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The invoker identifier (e.g., 'subprocess', 'mock')."""

    @abstractmethod
    def which(self, program: str) -> str | None:
        """Resolve ``program`` on PATH; None when it is not installed.

        Should be fast and never raise.
        """

    @abstractmethod
    def invoke(self, invocation: Invocation, action: str = "") -> ActionResult:
        """Run one invocation to completion and return its result."""

    def is_available(self, program: str) -> bool:
        return self.which(program) is not None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
