"""
Language registry — lookup and auto-detection of ecosystems.

The use case layer reaches language adapters through the registry,
never by instantiating them, so tests can register a reduced set.
"""

from __future__ import annotations

import logging
from pathlib import Path

from polybuild.adapters.languages import NodeAdapter, PythonAdapter, RustAdapter
from polybuild.adapters.languages.base import LanguageAdapter

logger = logging.getLogger(__name__)


class LanguageRegistry:
    """Registry of language adapters, in registration order."""

    def __init__(self) -> None:
        self._adapters: dict[str, LanguageAdapter] = {}

    def register(self, adapter: LanguageAdapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Overwriting existing language adapter: %s", adapter.name)
        self._adapters[adapter.name] = adapter
        logger.debug("Registered language adapter: %s", adapter.name)

    def unregister(self, name: str) -> None:
        self._adapters.pop(name, None)

    def get(self, name: str) -> LanguageAdapter | None:
        return self._adapters.get(name)

    def names(self) -> list[str]:
        return list(self._adapters)

    def adapters(self) -> list[LanguageAdapter]:
        return list(self._adapters.values())

    def detect_present(self, root: Path) -> list[LanguageAdapter]:
        """Adapters whose manifests or lockfiles exist in ``root``."""
        present = [a for a in self._adapters.values() if a.is_present(root)]
        logger.debug("Ecosystems present in %s: %s", root, [a.name for a in present])
        return present


def default_registry() -> LanguageRegistry:
    """Registry with every built-in ecosystem."""
    registry = LanguageRegistry()
    registry.register(NodeAdapter())
    registry.register(PythonAdapter())
    registry.register(RustAdapter())
    return registry
