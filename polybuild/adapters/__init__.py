"""Adapters — invokers for external processes and language bindings.

Public re-exports for convenient access. Language adapters and the
registry are imported from their own modules.
"""

from polybuild.adapters.base import Invoker
from polybuild.adapters.mock import MockInvoker
from polybuild.adapters.shell.command import SubprocessInvoker

__all__ = [
    "Invoker",
    "MockInvoker",
    "SubprocessInvoker",
]
