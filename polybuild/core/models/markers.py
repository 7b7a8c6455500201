"""
Marker models — what a project directory declares about itself.

A marker is a file whose presence (and content) tells us which tool
governs the project: lockfiles, manifests, linker configuration,
workspace member manifests.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class MarkerRole(str, Enum):
    """Logical role of a marker file."""

    MANIFEST = "manifest"
    LOCKFILE_STRICT = "lockfile-strict"
    LOCKFILE_LOOSE = "lockfile-loose"
    MANIFEST_FALLBACK = "manifest-fallback"
    LINKER_CONFIG = "linker-config"
    WORKSPACE_MEMBER = "workspace-member"


class MarkerSpec(BaseModel):
    """A candidate marker: a filename or glob relative to the project root."""

    pattern: str
    role: MarkerRole

    @property
    def is_glob(self) -> bool:
        return any(ch in self.pattern for ch in "*?[")


class Marker(BaseModel):
    """A marker file that actually exists."""

    path: str          # POSIX path relative to the project root
    role: MarkerRole


class ProjectDescriptor(BaseModel):
    """The set of marker files present in a project root.

    ``markers`` only lists files that exist. ``candidates`` lists every
    literal candidate filename whether present or not, so that a marker
    disappearing is visible to the fingerprint.
    """

    root: str
    ecosystem: str
    markers: list[Marker] = Field(default_factory=list)
    candidates: list[str] = Field(default_factory=list)

    def has(self, path: str) -> bool:
        return any(m.path == path for m in self.markers)

    def get(self, path: str) -> Marker | None:
        for m in self.markers:
            if m.path == path:
                return m
        return None

    def by_role(self, role: MarkerRole) -> list[Marker]:
        return [m for m in self.markers if m.role == role]

    @property
    def paths(self) -> list[str]:
        return [m.path for m in self.markers]

    @property
    def is_empty(self) -> bool:
        return not self.markers
