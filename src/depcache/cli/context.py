"""
Shared CLI state and error handling.
"""

from __future__ import annotations

import logging
import sys
import traceback
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from ..core.errors import DepcacheError, ExitCode
from ..storage.config import ConfigError, DepcacheConfig, load_config

console = Console()


class CLIContext:
    def __init__(self, config: Optional[str], verbose: bool, debug: bool):
        self.config_path = Path(config) if config else None
        self.verbose = verbose
        self.debug = debug
        self.workspace = Path.cwd()

        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="%(asctime)s | %(levelname)s | %(message)s",
        )

    def load_config(self) -> DepcacheConfig:
        return load_config(self.config_path)


pass_context = click.make_pass_decorator(CLIContext)


# ---------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------

def handle_error(exc: Exception, debug: bool) -> None:
    if isinstance(exc, ConfigError):
        console.print(f"[red]Configuration error:[/red] {escape(str(exc))}")
        sys.exit(ExitCode.CONFIG_ERROR.value)

    if isinstance(exc, DepcacheError):
        console.print(f"[red]Error:[/red] {escape(exc.message)}")
        if debug:
            console.print(exc.format(), markup=False, highlight=False)
            traceback.print_exc()
        sys.exit(exc.exit_code.value)

    # Unexpected error
    if debug:
        console.print("[red]Unexpected error:[/red]")
        traceback.print_exc()
    else:
        console.print(f"[red]Unexpected system error:[/red] {escape(str(exc))}")
        console.print("Run with --debug for traceback.")

    sys.exit(ExitCode.INTERNAL_ERROR.value)
