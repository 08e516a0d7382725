"""
Accountsmith CLI - Declarative account provisioning plans.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

import typer
from rich.console import Console
from rich.markup import escape

from .core import AccountProvisioner, BatchResult
from .errors import AccountsmithError, ConfigurationError
from .formatters import PlanFormatter
from .osinfo import StaticOSInfo
from .render import render_pyinfra
from .settings import get_settings

# Setup
app = typer.Typer(
    name="accountsmith",
    help="Declarative, idempotent account provisioning plans",
    add_completion=False,
)
console = Console()


def configure_logging():
    """Configure logging based on settings."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def load_accounts(path: Path) -> Dict[str, Dict[str, Any]]:
    """Load account requests from a JSON file.

    The file holds either a single account object with a username, or
    {"accounts": {title: params, ...}}.

    Args:
        path: JSON file

    Returns:
        Mapping of request title to raw parameters

    Raises:
        ConfigurationError: If the file cannot be read or has the wrong shape
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")

    if "accounts" in data:
        accounts = data["accounts"]
        if not isinstance(accounts, dict):
            raise ConfigurationError(f"'accounts' in {path} must be an object")
        return accounts

    username = data.get("username")
    if not isinstance(username, str) or not username:
        raise ConfigurationError(
            f"{path} must define 'accounts' or a single account with a 'username'"
        )
    return {username: data}


def _build_result(account_file: Path, os_family: str | None) -> BatchResult:
    os_info = StaticOSInfo(os_family) if os_family else None
    provisioner = AccountProvisioner(os_info=os_info)
    return provisioner.provision_many(load_accounts(account_file))


def _handle_command_error(e: Exception, command_type: str) -> None:
    """Print a command error and exit with code 1.

    Raises:
        SystemExit: Always exits with code 1
    """
    console.print(f"\n[bold red]✗ {command_type.capitalize()} failed:[/bold red] {escape(str(e))}")
    raise typer.Exit(code=1)


def _report_errors(result: BatchResult, formatter: PlanFormatter) -> None:
    if result.errors:
        console.print("\n[bold red]✗ Rejected accounts:[/bold red]")
        console.print(formatter.format_errors(result.errors))
        raise typer.Exit(code=1)


@app.callback()
def main():
    """Configure logging for every command."""
    configure_logging()


@app.command()
def plan(
    account_file: Path = typer.Argument(..., help="JSON file with account parameters"),
    os_family: str = typer.Option(
        None, "--os-family", help="OS family for home directory defaults (overrides detection)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print plans as JSON"),
):
    """Show the ordered resources each account converges to."""
    try:
        result = _build_result(account_file, os_family)
    except AccountsmithError as e:
        _handle_command_error(e, "plan")

    formatter = PlanFormatter(console)
    if as_json:
        document = {
            "plans": {
                title: account_plan.to_dict()
                for title, account_plan in result.plans.items()
            },
            "errors": result.errors,
        }
        typer.echo(json.dumps(document, indent=2))
        if result.errors:
            raise typer.Exit(code=1)
        return

    for account_plan in result.plans.values():
        formatter.print_plan(account_plan)
    _report_errors(result, formatter)


@app.command()
def render(
    account_file: Path = typer.Argument(..., help="JSON file with account parameters"),
    os_family: str = typer.Option(
        None, "--os-family", help="OS family for home directory defaults (overrides detection)"
    ),
    output: Path = typer.Option(
        None, "--output", "-o", help="Write the pyinfra deploy file here instead of stdout"
    ),
):
    """Render the plans as a pyinfra deploy file."""
    try:
        result = _build_result(account_file, os_family)
    except AccountsmithError as e:
        _handle_command_error(e, "render")

    _report_errors(result, PlanFormatter(console))

    code = render_pyinfra(result.plans.values())
    if output is None:
        typer.echo(code)
        return

    output.write_text(code, encoding="utf-8")
    console.print(f"[bold green]✓ Wrote {output}[/bold green]")


@app.command()
def version():
    """Show Accountsmith version."""
    from . import __version__

    console.print(f"Accountsmith version: [bold]{__version__}[/bold]")


if __name__ == "__main__":
    app()
