"""
Shared test fixtures and configuration.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from polybuild.adapters.mock import MockInvoker
from polybuild.core.config.loader import BuildConfig

ProjectFactory = Callable[..., Path]


@pytest.fixture
def mock_invoker() -> MockInvoker:
    """Invoker where every binary exists and every command succeeds."""
    return MockInvoker()


@pytest.fixture
def make_project(tmp_path: Path) -> ProjectFactory:
    """Create files under a fresh project root.

    Usage: ``make_project("package.json", ("yarn.lock", "# lock"))``.
    A bare name gets placeholder content.
    """
    root = tmp_path / "project"
    root.mkdir()

    def _make(*files: str | tuple[str, str]) -> Path:
        for entry in files:
            rel, content = entry if isinstance(entry, tuple) else (entry, f"{entry}\n")
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _make


@pytest.fixture
def config() -> BuildConfig:
    return BuildConfig()
