"""Configuration CLI commands."""

from __future__ import annotations

import typer
from rich.console import Console

from cleura import _config
from cleura._config import CleuraConfig, get_config_value, set_config_value

app = typer.Typer(help="Configuration management.")
console = Console()

SECRET_KEYS = ("token", "password")


def _mask(value: str) -> str:
    return value[:4] + "..." + value[-4:] if len(value) > 12 else "***"


@app.command("get")
def get(
    key: str = typer.Argument(..., help="Configuration key, e.g. host or reconcile.create_timeout"),
) -> None:
    """Get a configuration value.

    Example:
        cleura config get host
    """
    value = get_config_value(key)

    if value is None:
        console.print(f"[dim]No value set for '{key}'[/dim]")
    else:
        if key in SECRET_KEYS and value:
            value = _mask(value)
        console.print(value)


@app.command("set")
def set_value(
    key: str = typer.Argument(..., help="Configuration key"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value.

    Example:
        cleura config set username ops@example.com
        cleura config set reconcile.delete_timeout 3600
    """
    if value.lower() in ("true", "false"):
        typed_value: str | bool | int | float = value.lower() == "true"
    elif value.isdigit():
        typed_value = int(value)
    elif value.replace(".", "", 1).isdigit():
        typed_value = float(value)
    else:
        typed_value = value

    set_config_value(key, typed_value)
    shown = _mask(value) if key in SECRET_KEYS else value
    console.print(f"[green]Set {key} = {shown}[/green]")


@app.command("list")
def list_config() -> None:
    """List all configuration values."""
    config = CleuraConfig.load()

    console.print("[bold]Current Configuration[/bold]\n")

    console.print(f"  host: {config.host}")
    console.print(f"  username: {config.username or '[dim]not set[/dim]'}")
    for key in SECRET_KEYS:
        secret = getattr(config, key)
        console.print(f"  {key}: {_mask(secret) if secret else '[dim]not set[/dim]'}")
    console.print(f"  domain: {config.domain}")
    console.print(f"  timeout: {config.timeout}")
    console.print(f"  max_retries: {config.max_retries}")
    console.print(f"  debug: {config.debug}")
    console.print(f"  verify_ssl: {config.verify_ssl}")

    console.print("\n[bold]Reconcile[/bold]\n")
    console.print(f"  create_timeout: {config.reconcile.create_timeout}")
    console.print(f"  update_timeout: {config.reconcile.update_timeout}")
    console.print(f"  delete_timeout: {config.reconcile.delete_timeout}")

    console.print(f"\n[dim]Config file: {_config.CONFIG_FILE}[/dim]")


@app.command("path")
def show_path() -> None:
    """Show configuration file path."""
    console.print(str(_config.CONFIG_FILE))
