from __future__ import annotations

import click

from ..context import CLIContext, console, handle_error, pass_context
from ...core.hash import compute_workspace_fingerprint
from ...storage.config import NotFoundError


@click.command()
@pass_context
def calc(ctx: CLIContext):
    """Print the fingerprint of the current workspace."""
    try:
        try:
            suffix = ctx.load_config().package_hash_suffix
        except NotFoundError:
            # no config: fingerprint without suffix
            suffix = None

        fingerprint = compute_workspace_fingerprint(ctx.workspace, suffix)
    except Exception as e:
        handle_error(e, ctx.debug)
        return

    console.print(fingerprint, highlight=False)
