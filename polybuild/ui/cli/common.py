"""
Shared CLI plumbing for verb commands.

Every verb takes the same options and reports the same way, so the
commands themselves are thin wrappers over
``polybuild.core.use_cases.verbs.run_verb``.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

ECOSYSTEMS = ("node", "python", "rust")


def project_dir(ctx: click.Context) -> Path | None:
    value = ctx.obj.get("project_dir")
    return Path(value) if value else None


def split_features(values: tuple[str, ...]) -> list[str] | None:
    """``--features a,b --features c`` → ["a", "b", "c"]; nothing → None."""
    features = [f.strip() for v in values for f in v.split(",") if f.strip()]
    return features or None


def verb_options(func: Callable) -> Callable:
    """Attach the per-verb options shared by every verb."""
    options = [
        click.option(
            "--ecosystem", "-e", "ecosystems", multiple=True,
            type=click.Choice(ECOSYSTEMS),
            help="Restrict to an ecosystem (default: every detected one).",
        ),
        click.option("--toolchain", default=None, help="Toolchain id (e.g. stable, nightly)."),
        click.option(
            "--profile", type=click.Choice(["dev", "release"]), default=None,
            help="Build profile.",
        ),
        click.option(
            "--features", "features", multiple=True,
            help="Feature flags, comma-separated and/or repeated.",
        ),
        click.option("--target", "target_arch", default=None, help="Cross-compilation target."),
        click.option("--output-dir", default=None, help="Override the artifact directory."),
        click.option(
            "--strict-lint/--no-strict-lint", "strict_lint", default=None,
            help="Treat lint warnings as errors.",
        ),
        click.option("--mock", is_flag=True, help="Use mock invoker (no real execution)."),
        click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def overrides_from(opts: dict[str, Any]) -> dict[str, Any]:
    """CLI values that override polybuild.yml; unset ones stay None."""
    return {
        "toolchain": opts.get("toolchain"),
        "profile": opts.get("profile"),
        "features": split_features(opts.get("features") or ()),
        "target_arch": opts.get("target_arch"),
        "output_dir": opts.get("output_dir"),
        "strict_lint": opts.get("strict_lint"),
    }


# ── Reporting ───────────────────────────────────────────────────


def fail(message: str, hint: str = "", exit_code: int = 1) -> None:
    click.secho(f"❌ {message}", fg="red", err=True)
    if hint:
        click.echo(f"   💡 {hint}", err=True)
    sys.exit(exit_code)


def report(ctx: click.Context, result: Any, mock: bool) -> None:
    """Pretty-print a VerbRunResult and exit with its code."""
    verbose = ctx.obj.get("verbose", False)
    quiet = ctx.obj.get("quiet", False)
    mode_label = "[mock] " if mock else ""

    for verb_result in result.results:
        variant = verb_result.variant
        label = f" ({variant.label})" if variant else ""
        if not quiet:
            click.secho(
                f"\n⚡ {mode_label}{verb_result.verb} — {verb_result.ecosystem}{label}",
                fg="cyan",
                bold=True,
            )

        for warning in verb_result.warnings:
            click.secho(f"   ⚠️  {warning}", fg="yellow", err=True)

        if quiet:
            continue

        for step in verb_result.results:
            timing = f" ({step.duration_ms}ms)" if step.duration_ms else ""
            if step.status == "skipped":
                click.secho("   ⊘ ", fg="yellow", nl=False)
                click.echo(f"{step.output}")
            elif step.ok:
                click.secho("   ✓ ", fg="green", nl=False)
                click.echo(f"{step.command or step.output}{timing}")
                if verbose and step.output and step.command:
                    for line in step.output.split("\n")[:10]:
                        click.echo(f"     │ {line}")
            else:
                click.secho("   ✗ ", fg="red", nl=False)
                click.echo(f"{step.command}{timing}")

        for removed in verb_result.removed:
            click.echo(f"   🗑  {removed}")

    if result.error:
        if result.failure is not None and result.failure.error:
            for line in result.failure.error.split("\n")[:20]:
                click.echo(f"     │ {line}", err=True)
        fail(result.error, result.hint, result.exit_code or 1)

    if not quiet:
        click.echo()


def invoke_verb(ctx: click.Context, verb: str, opts: dict[str, Any]) -> None:
    """Run ``verb`` with the parsed options and report the outcome."""
    from polybuild.core.use_cases.verbs import run_verb

    ecosystems = list(opts.get("ecosystems") or ())
    mock = bool(opts.get("mock"))

    result = run_verb(
        verb,
        project_dir=project_dir(ctx),
        config_path=ctx.obj.get("config_path"),
        ecosystems=ecosystems or None,
        overrides=overrides_from(opts),
        mock_mode=mock,
        capture=bool(opts.get("as_json")),
    )

    if opts.get("as_json"):
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    report(ctx, result, mock)


def make_verb(verb: str, help_text: str, ecosystem: str | None = None) -> click.Command:
    """Build a click command for ``verb``.

    ``ecosystem`` pins the command to one ecosystem when the user does
    not pass ``--ecosystem`` (the rust-only verbs).
    """

    @click.pass_context
    def command(ctx: click.Context, **opts: Any) -> None:
        if ecosystem and not opts.get("ecosystems"):
            opts["ecosystems"] = (ecosystem,)
        invoke_verb(ctx, verb, opts)

    command.__doc__ = help_text
    return click.command(name=verb)(verb_options(command))
