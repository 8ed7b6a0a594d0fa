"""CLI utilities."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from cleura.client import CleuraClient
from cleura.exceptions import AuthenticationError, ValidationError
from cleura.models.cluster import ClusterSpec

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

console = Console()
error_console = Console(stderr=True)


def get_client() -> CleuraClient:
    """Get an authenticated CleuraClient from environment and config file."""
    try:
        return CleuraClient()
    except AuthenticationError as e:
        error_console.print(f"[red]Authentication error:[/red] {escape(e.message)}")
        error_console.print("\nTo authenticate, run:")
        error_console.print("  cleura config set username <login>")
        error_console.print("  cleura config set token $(cleura token get <login>)")
        raise typer.Exit(1) from None


def configure_logging(verbose: bool) -> None:
    """Send ``cleura.*`` log records to stderr through rich."""
    logger = logging.getLogger("cleura")
    if not verbose or any(isinstance(h, RichHandler) for h in logger.handlers):
        return
    handler = RichHandler(console=error_console, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


def load_spec_file(path: Path) -> ClusterSpec:
    """Load a cluster spec from a TOML or JSON file.

    Raises:
        ValidationError: If the file does not describe a valid cluster.
    """
    if path.suffix == ".json":
        data = json.loads(path.read_text())
    else:
        with open(path, "rb") as f:
            data = tomllib.load(f)

    # Allow the spec to sit under a [cluster] table
    if isinstance(data, dict) and "cluster" in data and isinstance(data["cluster"], dict):
        data = data["cluster"]

    try:
        return ClusterSpec.model_validate(data)
    except ValueError as e:
        raise ValidationError(f"Invalid cluster spec file {path}: {e}") from e


def output_json(data: Any) -> None:
    """Output data as JSON."""
    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")
    elif isinstance(data, list) and data and hasattr(data[0], "model_dump"):
        data = [item.model_dump(mode="json") for item in data]

    console.print_json(json.dumps(data, default=str))


def output_table(
    data: list[Any],
    columns: list[tuple[str, str]],
    title: str | None = None,
) -> None:
    """Output data as a Rich table.

    Args:
        data: List of objects
        columns: List of (field_name, header) tuples
        title: Optional table title
    """
    table = Table(title=title, show_header=True, header_style="bold")

    for _, header in columns:
        table.add_column(header)

    for item in data:
        row = []
        for field, _ in columns:
            if hasattr(item, field):
                value = getattr(item, field)
            elif isinstance(item, dict):
                value = item.get(field, "")
            else:
                value = ""

            if value is None or value == "":
                value = "-"
            elif isinstance(value, bool):
                value = "Yes" if value else "No"
            elif isinstance(value, (list, tuple)):
                value = ", ".join(str(v) for v in value) or "-"
            elif isinstance(value, dict):
                value = ", ".join(f"{k}={v}" for k, v in value.items()) or "-"

            row.append(str(value))

        table.add_row(*row)

    console.print(table)


def handle_error(e: Exception) -> NoReturn:
    """Handle and display an error."""
    error_console.print(f"[red]Error:[/red] {escape(str(e))}")

    raise typer.Exit(1)


def get_json_flag(ctx: typer.Context) -> bool:
    """Get JSON output flag from context."""
    return ctx.obj.get("json", False) if ctx.obj else False
