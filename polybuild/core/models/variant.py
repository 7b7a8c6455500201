"""
ToolVariant — the single tool choice active for one invocation.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ToolVariant(BaseModel):
    """A member of an ecosystem's closed set of tool choices.

    node:   pnpm | yarn | bun | npm-strict | npm-loose
    python: poetry | requirements-lock | requirements-txt | editable-fallback
    rust:   cargo
    """

    ecosystem: str
    name: str
    tool: str                        # binary that must be on PATH
    lockfile: str | None = None      # marker that selected the variant
    strict: bool = False             # frozen/reproducible install mode
    linker: str | None = None        # yarn nodeLinker
    fallback: str | None = None      # variant to use when ``tool`` is missing
    toolchain: str | None = None
    target_arch: str | None = None
    workspace_members: list[str] = Field(default_factory=list)
    reason: str = ""

    @property
    def label(self) -> str:
        if self.linker:
            return f"{self.name} (linker: {self.linker})"
        if self.toolchain:
            return f"{self.name} +{self.toolchain}"
        return self.name
