"""
winstage — CLI entrypoint.

Usage:
    winstage --help
    winstage resolve /usr/x86_64-w64-mingw32/sys-root/mingw build/win64/bin/app.exe
    winstage config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from winstage import __version__
from winstage.core.observability.logging_config import (
    ENV_FILE,
    ENV_FILE_LEVEL,
    level_from_flags,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="winstage")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to winstage.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """winstage — stage Windows binaries with their DLL dependencies."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=level_from_flags(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
    )


@cli.command()
@click.argument("system_root", type=click.Path(file_okay=False, path_type=Path))
@click.argument("subject", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def resolve(ctx: click.Context, system_root: Path, subject: Path, as_json: bool) -> None:
    """Copy every DLL SUBJECT needs from SYSTEM_ROOT next to it.

    Dependencies of the copied DLLs are resolved too, recursively.
    System libraries (KERNEL32, USER32, ...) are left out.

    Examples:

        winstage resolve $MINGW_PREFIX build/win64-rel/bin/app.exe

        winstage resolve --json /opt/mingw64 dist/bin/tool.exe
    """
    from winstage.core.use_cases.resolve import resolve_subject

    result = resolve_subject(
        system_root=system_root,
        subject=subject,
        config_path=ctx.obj.get("config_path"),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))

    if not result.ok:
        # Plain diagnostic line for build scripts, even in JSON mode.
        click.echo(result.error, err=True)
        if not result.retriable:
            click.echo(
                f"   {subject.parent} may hold partially staged libraries, clean it up before retrying",
                err=True,
            )
            for line in result.rollback_errors:
                click.echo(f"   • {line}", err=True)
        sys.exit(1)

    if as_json:
        return

    report = result.report
    assert report is not None

    if ctx.obj.get("quiet"):
        return

    click.secho(f"\n📦 {subject.name}", fg="cyan", bold=True)
    click.echo(f"   Target: {report.target_dir}")
    click.echo()
    for name in report.copied:
        click.secho("   + ", fg="green", nl=False)
        click.echo(name)
    if ctx.obj.get("verbose"):
        for name in report.present:
            click.secho("   = ", fg="white", nl=False)
            click.echo(f"{name} (already staged)")
        for name in report.excluded:
            click.secho("   - ", fg="yellow", nl=False)
            click.echo(f"{name} (system)")
    click.echo()
    click.secho(
        f"   {report.copy_count} copied, {len(report.present)} already staged, "
        f"{len(report.excluded)} system",
        fg="green",
        bold=True,
    )
    click.echo()


@cli.group()
def config() -> None:
    """Stage configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate winstage.yml configuration."""
    from winstage.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)
        return

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        if result.config_path:
            click.echo(f"   File: {result.config_path}")
        click.echo(f"   Inspector: {result.config.inspector}")
        click.echo(f"   Library dir: {result.config.library_dir}")
        click.echo(f"   Extra exclusions: {len(result.config.exclude)}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


# ── Register sub-command groups from winstage/ui/cli/ ─────────────

from winstage.ui.cli.deps import deps

cli.add_command(deps)


if __name__ == "__main__":
    cli()
