"""Token CLI commands."""

from __future__ import annotations

import typer
from rich.console import Console

from cleura._config import CleuraConfig
from cleura._http import HttpClient
from cleura.cli._utils import get_client, get_json_flag, handle_error, output_json
from cleura.resources.tokens import Tokens

app = typer.Typer(help="API token commands.")
console = Console()


@app.command("get")
def get(
    ctx: typer.Context,
    username: str = typer.Argument(..., help="Cleura account login"),
    password: str = typer.Option(
        ...,
        "--password",
        "-p",
        prompt=True,
        hide_input=True,
        envvar="CLEURA_API_PASSWORD",
        help="Cleura account password",
    ),
) -> None:
    """Request a new API token.

    Example:
        cleura config set token $(cleura token get ops@example.com)
    """
    try:
        config = CleuraConfig.load()
        with HttpClient(
            base_url=config.host, timeout=config.timeout, verify_ssl=config.verify_ssl
        ) as http:
            token = Tokens(http).issue(username, password)

        if get_json_flag(ctx):
            output_json({"token": token})
        else:
            console.print(token, soft_wrap=True)

    except Exception as e:
        handle_error(e)


@app.command("validate")
def validate(ctx: typer.Context) -> None:
    """Check that the configured token is accepted."""
    client = get_client()
    try:
        with client:
            client.tokens.validate()

        if get_json_flag(ctx):
            output_json({"valid": True})
        else:
            console.print("[green]Token is valid[/green]")

    except Exception as e:
        handle_error(e)


@app.command("revoke")
def revoke() -> None:
    """Revoke the configured token."""
    client = get_client()
    try:
        with client:
            client.tokens.revoke()
        console.print("[green]Token revoked[/green]")

    except Exception as e:
        handle_error(e)
