"""
ParameterTuple — build knobs that change output identity.

Profile, features, target architecture and toolchain change which
artifacts a build produces but never which tool is chosen. Every layer
receives the same frozen snapshot.
"""

from __future__ import annotations

import json
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

Profile = Literal["dev", "release"]

PARAMETER_FIELDS = ("profile", "features", "target_arch", "toolchain")


class ParameterTuple(BaseModel):
    """Immutable set of build parameters for one invocation."""

    model_config = ConfigDict(frozen=True)

    profile: Profile = "dev"
    features: tuple[str, ...] = ()
    target_arch: str | None = None
    toolchain: str | None = None

    @field_validator("features", mode="before")
    @classmethod
    def _normalize_features(cls, value: object) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        seen: dict[str, None] = {}
        for item in value:  # type: ignore[union-attr]
            for part in str(item).split(","):
                part = part.strip()
                if part:
                    seen.setdefault(part, None)
        return tuple(seen)

    @field_validator("target_arch", "toolchain", mode="before")
    @classmethod
    def _blank_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def canonical(self) -> str:
        """Stable serialization: sorted keys, sorted features."""
        return json.dumps(
            {
                "profile": self.profile,
                "features": sorted(self.features),
                "target_arch": self.target_arch,
                "toolchain": self.toolchain,
            },
            sort_keys=True,
            separators=(",", ":"),
        )

    def project(self, fields: tuple[str, ...]) -> ParameterTuple:
        """Keep only ``fields``; everything else goes back to its default."""
        unknown = set(fields) - set(PARAMETER_FIELDS)
        if unknown:
            raise ValueError(f"Unknown parameter fields: {sorted(unknown)}")
        return ParameterTuple(**{f: getattr(self, f) for f in fields})

    @property
    def is_release(self) -> bool:
        return self.profile == "release"
