"""Main CLI entry point."""

from __future__ import annotations

import typer
from rich.console import Console

from cleura._version import __version__
from cleura.cli import config, profile, shoot, token
from cleura.cli._utils import configure_logging

app = typer.Typer(
    name="cleura",
    help="Cleura CLI - Gardener shoot clusters as code.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register sub-commands
app.add_typer(shoot.app, name="shoot", help="Shoot cluster management")
app.add_typer(profile.app, name="profile", help="Cloud profiles")
app.add_typer(token.app, name="token", help="API tokens")
app.add_typer(config.app, name="config", help="Configuration management")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"cleura-shoot version {__version__}")


@app.callback()
def main(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log API calls and polling to stderr",
    ),
) -> None:
    """Cleura CLI - Gardener shoot clusters as code."""
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    configure_logging(verbose)


if __name__ == "__main__":
    app()
