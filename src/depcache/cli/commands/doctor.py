"""
depcache Doctor Command

Checks what a cycle depends on:
- Python version
- git and git-lfs availability
- registered backends and their environment
- the configuration file

Supports warnings vs errors; only errors affect the exit code.
"""

import asyncio
import json
import logging
import platform
import shutil
import sys
from typing import Dict, Tuple

import click

from ..context import CLIContext, console, pass_context
from ...backends.registry import BackendRegistry
from ...core.errors import DepcacheError, ExitCode
from ...storage.config import ConfigError, NotFoundError
from ...wrappers import git

logger = logging.getLogger("depcache.doctor")

# -------------------------------
# Constants
# -------------------------------
REQUIRED_PYTHON = (3, 9)


# -------------------------------
# Helpers
# -------------------------------
def check_git() -> Dict:
    """Locate git and probe its LFS extension."""
    result = {"path": shutil.which("git"), "lfs": False, "lfs_error": None}
    if not result["path"]:
        return result

    try:
        result["lfs"] = asyncio.run(git.is_git_lfs_available())
    except DepcacheError as e:
        logger.debug(f"git-lfs probe failed: {e}")
        result["lfs_error"] = e.message
    return result


def check_config(ctx: CLIContext) -> Tuple[Dict, str]:
    """Returns the config report and a severity: ok, warning or error."""
    try:
        config = ctx.load_config()
    except NotFoundError as e:
        return {"valid": False, "error": str(e)}, "warning"
    except ConfigError as e:
        return {"valid": False, "error": str(e)}, "error"

    return {
        "valid": True,
        "backends": [
            {
                "alias": b.alias,
                "backend": b.backend.name,
                "push": b.push,
                "push_may_fail": b.push_may_fail,
            }
            for b in config.backends
        ],
        "use_git_history": config.use_git_history,
        "fallback_to_npm": config.fallback_to_npm,
    }, "ok"


# -------------------------------
# CLI Command
# -------------------------------
@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output results in JSON format")
@pass_context
def doctor(ctx: CLIContext, as_json: bool):
    """
    Check the environment depcache runs in.
    """
    results = {"checks": {}, "platform": {}}
    failures = []
    warnings = []

    # Python version
    py_info = sys.version_info
    py_ok = py_info >= REQUIRED_PYTHON
    results["checks"]["python"] = {"version": f"{py_info.major}.{py_info.minor}.{py_info.micro}", "ok": py_ok}
    if not py_ok:
        failures.append(f"Python >= {REQUIRED_PYTHON[0]}.{REQUIRED_PYTHON[1]} required")

    # git
    git_results = check_git()
    results["checks"]["git"] = git_results
    if not git_results["path"]:
        failures.append("git not found on PATH")
    elif not git_results["lfs"]:
        warnings.append(f"git-lfs not available: {git_results['lfs_error']}")

    # Backends
    backend_validations = BackendRegistry.list_backends()
    results["backends"] = {
        name: {
            "is_valid": v.is_valid,
            "errors": v.errors,
            "warnings": v.warnings,
            "info": v.info,
        }
        for name, v in backend_validations.items()
    }

    # Configuration
    config_results, severity = check_config(ctx)
    results["config"] = config_results
    if severity == "error":
        failures.append(f"Invalid configuration: {config_results['error']}")
    elif severity == "warning":
        warnings.append(config_results["error"])

    results["platform"] = {
        "os": platform.system(),
        "release": platform.release(),
        "arch": platform.machine(),
    }

    # -------------------------------
    # Output
    # -------------------------------
    if as_json:
        results["status"] = "fail" if failures else "pass"
        results["failures"] = failures
        results["warnings"] = warnings
        click.echo(json.dumps(results, indent=2))
    else:
        console.print("\n[bold]depcache Environment Check[/bold]\n")
        py_status = "[green]✓[/green]" if py_ok else "[red]✗[/red]"
        console.print(f"{py_status} Python {py_info.major}.{py_info.minor}.{py_info.micro}")

        git_status = "[green]✓[/green]" if git_results["path"] else "[red]✗[/red]"
        console.print(f"{git_status} git {git_results['path'] or 'not found'}")
        lfs_status = "[green]✓[/green]" if git_results["lfs"] else "[yellow]⚠️[/yellow]"
        console.print(f"{lfs_status} git-lfs")

        console.print("\n[bold]Available Backends:[/bold]")
        for backend_name, validation in backend_validations.items():
            status = "[green]✓[/green]" if validation.is_valid else "[red]✗[/red]"
            console.print(f"  {status} {backend_name}")

            for key, value in validation.info.items():
                console.print(f"      {key}: {value}")

            for warning in validation.warnings:
                console.print(f"      [yellow]⚠️  {warning}[/yellow]")

            for error in validation.errors:
                console.print(f"      [red]✗ {error}[/red]")

        console.print("\n[bold]Configuration:[/bold]")
        if config_results["valid"]:
            for backend in config_results["backends"]:
                flags = []
                if backend["push"]:
                    flags.append("push")
                if backend["push_may_fail"]:
                    flags.append("push_may_fail")
                flag_str = f" ({', '.join(flags)})" if flags else ""
                console.print(f"  {backend['alias']}: {backend['backend']}{flag_str}")
        else:
            console.print(f"  [yellow]{config_results['error']}[/yellow]")

        console.print()
        for w in warnings:
            console.print(f"[yellow]⚠️  {w}[/yellow]")
        if failures:
            console.print("[bold red]✗ Some checks failed[/bold red]")
            for f in failures:
                console.print(f"  {f}")
        else:
            console.print("[bold green]✓ All checks passed![/bold green]")

    if failures:
        sys.exit(ExitCode.ENVIRONMENT_ERROR.value)
