"""
CLI commands for dependency inspection.

Thin wrappers over ``winstage.core.use_cases.inspect``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


@click.group()
def deps() -> None:
    """Dependencies — list imports, show exclusions."""


@deps.command("list")
@click.argument("subject", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_deps(ctx: click.Context, subject: Path, as_json: bool) -> None:
    """Show the DLLs SUBJECT imports directly."""
    from winstage.core.use_cases.inspect import inspect_subject

    result = inspect_subject(subject, config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"🔍 {subject.name} ({result.inspector}):", fg="cyan", bold=True)
    if not result.entries:
        click.echo("   No imported libraries")
    for entry in result.entries:
        if entry.excluded:
            click.secho(f"   - {entry.name}", fg="yellow", nl=False)
            click.echo("  (system)")
        elif entry.staged:
            click.secho(f"   ✓ {entry.name}", fg="green", nl=False)
            click.echo("  (staged)")
        else:
            click.echo(f"   • {entry.name}")
    click.echo()


@deps.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def exclusions(ctx: click.Context, as_json: bool) -> None:
    """Show the system libraries that are never staged."""
    from winstage.core.use_cases.inspect import list_exclusions

    result = list_exclusions(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"🛡️  System libraries ({len(result.names)}):", fg="cyan", bold=True)
    extra = set(result.extra)
    for name in result.names:
        marker = "  (config)" if name in extra else ""
        click.echo(f"   • {name}{marker}")
    click.echo()
