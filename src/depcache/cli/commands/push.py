"""
Push command: upload the current node_modules to every push backend.
"""

from __future__ import annotations

import asyncio

import click
from rich.progress import Progress, SpinnerColumn, TextColumn

from ..context import CLIContext, console, handle_error, pass_context
from ...sync.install import InstallService


@click.command()
@pass_context
def push(ctx: CLIContext):
    """Push node_modules under the current fingerprint."""
    try:
        config = ctx.load_config()
        with Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            service = InstallService(config, ctx.workspace, progress=progress)
            fingerprint = asyncio.run(service.push())
    except Exception as e:
        handle_error(e, ctx.debug)
        return

    console.print(f"[green]✓ Pushed {fingerprint}[/green]")
