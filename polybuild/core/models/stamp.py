"""
StampRecord — proof that an action last succeeded against a fingerprint.

Serialized to ``<store>/<action_key>.json``. Existence plus fingerprint
equality is the only gate for skipping work.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StampRecord(BaseModel):
    """Persisted (fingerprint, action key) pair."""

    schema_version: int = 1

    action_key: str
    action: str = ""
    fingerprint: str

    parameters: dict[str, Any] = Field(default_factory=dict)
    variant: str = ""

    written_at: str = Field(default_factory=_now_iso)
