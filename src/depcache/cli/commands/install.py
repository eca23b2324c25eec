"""
Install command.

Pulls node_modules for the current package.json/package-lock.json, falling
back to git history and npm, and pushes whatever had to be built.
"""

from __future__ import annotations

import asyncio

import click
from rich.progress import Progress, SpinnerColumn, TextColumn

from ..context import CLIContext, console, handle_error, pass_context
from ...sync.install import InstallSource, install as install_cycle


@click.command()
@click.option("--force", is_flag=True, help="Remove an existing node_modules first")
@pass_context
def install(ctx: CLIContext, force: bool):
    """Install node_modules from the bundle cache."""
    try:
        config = ctx.load_config()

        with Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            result = asyncio.run(install_cycle(
                config,
                workspace=ctx.workspace,
                force=force,
                progress=progress,
            ))

    except Exception as e:
        handle_error(e, ctx.debug)
        return

    if result.source is InstallSource.PULL:
        console.print(f"[green]✓ Pulled {result.fingerprint} from '{result.backend}'[/green]")
    elif result.source is InstallSource.GIT_HISTORY:
        console.print(
            f"[green]✓ Updated older bundle from '{result.backend}' "
            f"and pushed {result.fingerprint}[/green]"
        )
    else:
        console.print(f"[green]✓ Installed with npm and pushed {result.fingerprint}[/green]")

    if result.re_pulled:
        console.print("[dim]Bundle was pushed concurrently elsewhere; re-pulled it.[/dim]")
