"""
depcache CLI entry point.
"""

import click

from .context import CLIContext
from .commands.calc import calc
from .commands.doctor import doctor
from .commands.install import install
from .commands.push import push
from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="depcache")
@click.option("--config", type=click.Path(exists=True, dir_okay=False), help="Path to .depcache.yaml")
@click.option("--verbose", is_flag=True, help="Enable verbose debugging output")
@click.option("--debug", is_flag=True, help="Show full tracebacks on errors.")
@click.pass_context
def cli(ctx, config, verbose, debug):
    """
    depcache - Cache node_modules bundles by dependency fingerprint.

    Pulls a prebuilt node_modules when one exists, otherwise installs it
    and pushes the result to every configured backend.
    """
    ctx.obj = CLIContext(config, verbose, debug)


cli.add_command(install)
cli.add_command(push)
cli.add_command(calc)
cli.add_command(doctor)


if __name__ == "__main__":
    cli()
