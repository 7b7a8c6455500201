"""
CLI commands only Rust offers: toolchain management, lint, format, nextest.

Each defaults to ``--ecosystem rust``.
"""

from __future__ import annotations

from polybuild.ui.cli.common import make_verb

toolchain = make_verb(
    "toolchain",
    "Install/update the rustup toolchain (and --target) if not yet stamped.",
    ecosystem="rust",
)
clippy = make_verb(
    "clippy",
    "Run clippy (warnings are errors unless --no-strict-lint).",
    ecosystem="rust",
)
clippy_fix = make_verb(
    "clippy-fix",
    "Apply clippy's automatic fixes.",
    ecosystem="rust",
)
fmt = make_verb("fmt", "Format every workspace crate.", ecosystem="rust")
fmt_check = make_verb(
    "fmt-check",
    "Check formatting without changing files.",
    ecosystem="rust",
)
nextest = make_verb(
    "nextest",
    "Run tests with cargo-nextest.",
    ecosystem="rust",
)

commands = [toolchain, clippy, clippy_fix, fmt, fmt_check, nextest]
