"""
Python adapter — virtualenv + poetry / pip-tools / pip.

Priority: poetry.lock > requirements.lock > requirements.txt >
editable install from pyproject.toml / setup.py / setup.cfg.

Unlike node, a missing ``poetry`` binary is not fatal: the install
falls back to ``pip install -e .`` with a warning.
"""

from __future__ import annotations

from pathlib import Path

from polybuild.adapters.languages.base import AdapterContext, LanguageAdapter
from polybuild.core.models.action import Invocation
from polybuild.core.models.markers import MarkerRole, MarkerSpec
from polybuild.core.models.variant import ToolVariant
from polybuild.core.services.detector import DetectionRule

_EXPORTED_REQUIREMENTS = "requirements.txt"


class PythonAdapter(LanguageAdapter):
    """Python virtual environment management."""

    name = "python"
    title = "Python"

    primary_action = "install"
    actions = frozenset({"install", "run", "test"})
    parameter_fields = ()

    default_output_dir = "venv"
    default_interpreter = "python3"
    default_entry = "main.py"

    marker_specs = (
        MarkerSpec(pattern="pyproject.toml", role=MarkerRole.MANIFEST_FALLBACK),
        MarkerSpec(pattern="poetry.lock", role=MarkerRole.LOCKFILE_STRICT),
        MarkerSpec(pattern="requirements.lock", role=MarkerRole.LOCKFILE_STRICT),
        MarkerSpec(pattern="requirements.txt", role=MarkerRole.LOCKFILE_LOOSE),
        MarkerSpec(pattern="uv.lock", role=MarkerRole.LOCKFILE_LOOSE),
        MarkerSpec(pattern="Pipfile.lock", role=MarkerRole.LOCKFILE_LOOSE),
        MarkerSpec(pattern="setup.cfg", role=MarkerRole.MANIFEST_FALLBACK),
        MarkerSpec(pattern="setup.py", role=MarkerRole.MANIFEST_FALLBACK),
    )

    rules = (
        DetectionRule(
            "poetry", "poetry", markers=("poetry.lock",), strict=True,
            fallback="editable-fallback",
        ),
        DetectionRule("requirements-lock", "pip", markers=("requirements.lock",), strict=True),
        DetectionRule("requirements-txt", "pip", markers=("requirements.txt",)),
        DetectionRule("editable-fallback", "pip", roles=(MarkerRole.MANIFEST_FALLBACK,)),
    )

    install_hints = {
        "poetry": "pipx install poetry",
        "python3": "https://www.python.org/downloads/",
    }

    def bin_path(self, ctx: AdapterContext, program: str) -> Path:
        return ctx.output_path / "bin" / program

    def required_binaries(
        self, variant: ToolVariant, action: str, ctx: AdapterContext
    ) -> list[str]:
        if action != "install":
            return []
        needed = []
        if not self.bin_path(ctx, "python").exists():
            needed.append(ctx.interpreter)
        if variant.tool == "poetry":
            needed.append("poetry")
        return needed

    def commands(
        self, variant: ToolVariant, action: str, ctx: AdapterContext
    ) -> list[Invocation]:
        python = str(self.bin_path(ctx, "python"))

        if action == "run":
            return [ctx.invocation([python, ctx.entry], f"run {ctx.entry}")]
        if action == "test":
            return [ctx.invocation([python, "-m", "pytest"], "pytest")]
        if action != "install":
            return []

        pip = str(self.bin_path(ctx, "pip"))
        steps: list[Invocation] = []

        if not self.bin_path(ctx, "python").exists():
            steps.append(
                ctx.invocation([ctx.interpreter, "-m", "venv", ctx.output_dir], "create venv")
            )
        steps.append(ctx.invocation([pip, "install", "-U", "pip"], "upgrade pip"))

        if variant.name == "poetry":
            exported = f"{ctx.output_dir}/{_EXPORTED_REQUIREMENTS}"
            steps.append(
                ctx.invocation(
                    ["poetry", "export", "--without-hashes", "-f", "requirements.txt", "-o", exported],
                    "poetry export",
                )
            )
            steps.append(ctx.invocation([pip, "install", "-r", exported], "pip install"))
        elif variant.name == "requirements-lock":
            steps.append(ctx.invocation([pip, "install", "-r", "requirements.lock"], "pip install"))
        elif variant.name == "requirements-txt":
            steps.append(ctx.invocation([pip, "install", "-r", "requirements.txt"], "pip install"))
        else:
            steps.append(ctx.invocation([pip, "install", "-e", "."], "editable install"))

        return steps
