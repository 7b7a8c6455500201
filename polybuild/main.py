"""
polybuild — CLI entrypoint.

Usage:
    polybuild --help
    polybuild help
    polybuild status
    polybuild install
    polybuild build --profile release --features simd
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import click

from polybuild import __version__
from polybuild.core.observability.logging_config import (
    ENV_FILE,
    ENV_FILE_LEVEL,
    resolve_level,
    setup_logging,
)
from polybuild.ui.cli.common import ECOSYSTEMS, fail, make_verb, project_dir


@click.group()
@click.version_option(version=__version__, prog_name="polybuild")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to polybuild.yml (default: auto-detect).",
)
@click.option(
    "--project-dir",
    "-C",
    "project_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Project root (default: polybuild.yml directory or cwd).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    project_dir: str | None,
) -> None:
    """polybuild — one build front end for Node.js, Python and Rust."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["project_dir"] = project_dir

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
    )


@cli.command("help")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def help_cmd(ctx: click.Context, as_json: bool) -> None:
    """Show verbs, configuration and the detection priority."""
    from polybuild.core.use_cases.status import get_help

    result = get_help(project_dir=project_dir(ctx), config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.error:
        fail(result.error)

    config = result.config
    assert config is not None

    click.secho("\n🔧 polybuild", fg="cyan", bold=True)
    click.echo(f"   Project: {result.project_root}")
    if result.config_path:
        click.echo(f"   Config:  {result.config_path}")
    click.echo()

    click.secho("   Verbs:", fg="white", bold=True)
    click.echo(f"     {', '.join(result.verbs.get('common', []))}, status, help")
    for name in ECOSYSTEMS:
        extras = result.verbs.get(name)
        if extras:
            click.echo(f"     {name}: {', '.join(extras)}")
    click.echo()

    click.secho("   Configuration:", fg="white", bold=True)
    click.echo(f"     TOOLCHAIN   = {config.toolchain}")
    click.echo(f"     PROFILE     = {config.profile}")
    click.echo(f"     FEATURES    = {','.join(config.features) or '(none)'}")
    click.echo(f"     TARGET_ARCH = {config.target_arch or '(host)'}")
    click.echo(f"     STRICT_LINT = {'1' if config.strict_lint else '0'}")

    for eco in result.ecosystems:
        click.echo()
        marker = " ✓" if eco["present"] else ""
        click.secho(f"   {eco['title']}{marker}", fg="white", bold=True)
        click.echo(f"     Output dir: {eco['output_dir']}")
        if eco["interpreter"]:
            click.echo(f"     Run:        {eco['interpreter']} {eco['entry']}")
        if eco["files"]:
            click.echo(f"     Files:      {', '.join(eco['files'])}")
        else:
            click.echo("     Files:      (none detected)")
        click.echo("     Priority:")
        for line in eco["priority"]:
            click.echo(f"       {line}")

    click.echo()


@cli.command()
@click.option(
    "--ecosystem", "-e", "ecosystems", multiple=True,
    type=click.Choice(ECOSYSTEMS),
    help="Restrict to an ecosystem (default: every detected one).",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, ecosystems: tuple[str, ...], as_json: bool) -> None:
    """Show detected tools, fingerprints and stamp freshness."""
    from polybuild.core.use_cases.status import get_status

    result = get_status(
        project_dir=project_dir(ctx),
        config_path=ctx.obj.get("config_path"),
        ecosystems=list(ecosystems) or None,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.error:
        fail(result.error)

    click.secho(f"\n📋 {result.project_root}", fg="cyan", bold=True)
    if not result.ecosystems:
        click.secho("   ⚠️  No ecosystems detected", fg="yellow")
        click.echo()
        return

    for eco in result.ecosystems:
        click.echo()
        click.secho(f"   {eco['ecosystem']}", fg="white", bold=True)
        if "error" in eco:
            click.secho(f"     ❌ {eco['error']}", fg="red")
            continue

        variant = eco["variant"]
        click.echo(f"     Tool:        {variant['name']} ({variant['reason']})")
        if "linker" in eco and variant["name"] == "yarn":
            click.echo(f"     Linker:      {eco['linker']}")
        if variant.get("workspace_members"):
            click.echo(f"     Members:     {', '.join(variant['workspace_members'])}")
        click.echo(f"     Fingerprint: {eco['fingerprint'][:16]}")
        if eco["fresh"]:
            click.secho("     State:       fresh", fg="green")
        else:
            click.secho("     State:       stale", fg="yellow")
        if "toolchain" in eco:
            tc = eco["toolchain"]
            ready = "installed" if tc["satisfied"] else "not stamped"
            target = f" ({tc['target_arch']})" if tc["target_arch"] else ""
            click.echo(f"     Toolchain:   {tc['id']}{target} {ready}")
        for stamp in eco["stamps"]:
            click.echo(f"     • {stamp['action_key']}  {stamp['written_at']}")

    click.echo()


# ── Verbs ───────────────────────────────────────────────────────

cli.add_command(make_verb("install", "Install dependencies (skipped when up to date)."))
cli.add_command(make_verb("build", "Build (skipped when up to date)."))
cli.add_command(make_verb("run", "Install/build if needed, then run the entry point."))
cli.add_command(make_verb("test", "Install/build if needed, then run the tests."))
cli.add_command(make_verb("check", "Type-check without producing artifacts."))
cli.add_command(make_verb("clean", "Remove artifacts and every stamp."))
cli.add_command(make_verb("reinstall", "Clean, then install/build unconditionally."))

# ── Register ecosystem-specific verbs from polybuild/ui/cli/ ────

from polybuild.ui.cli.rust import commands as rust_commands  # noqa: E402

for _command in rust_commands:
    cli.add_command(_command)


if __name__ == "__main__":
    cli()
