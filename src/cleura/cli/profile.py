"""Cloud profile CLI commands."""

from __future__ import annotations

import typer
from rich.console import Console

from cleura.cli._utils import get_client, get_json_flag, handle_error, output_json, output_table

app = typer.Typer(help="Cloud profile commands.")
console = Console()


@app.command("show")
def show(
    ctx: typer.Context,
    domain: str = typer.Argument("public", help="Gardener domain"),
    supported_only: bool = typer.Option(
        False,
        "--supported-only",
        "-s",
        help="Only list versions classified as supported",
    ),
    cpu: str | None = typer.Option(None, "--cpu", help="Only machine types with this CPU count"),
    memory: str | None = typer.Option(
        None, "--memory", help="Only machine types with this memory, e.g. 8Gi"
    ),
) -> None:
    """Show what a Gardener domain offers."""
    client = get_client()
    try:
        with client:
            profile = client.cloud_profiles.get(domain)

        profile = profile.filtered(
            supported_kubernetes_only=supported_only,
            supported_images_only=supported_only,
            cpu=cpu,
            memory=memory,
        )

        if get_json_flag(ctx):
            output_json(profile)
            return

        output_table(
            profile.spec.kubernetes.versions,
            columns=[
                ("version", "Version"),
                ("classification", "Classification"),
                ("expiration_date", "Expires"),
            ],
            title="Kubernetes versions",
        )
        output_table(
            [
                {"name": image.name, **v.model_dump()}
                for image in profile.spec.machine_images
                for v in image.versions
            ],
            columns=[
                ("name", "Image"),
                ("version", "Version"),
                ("classification", "Classification"),
                ("expiration_date", "Expires"),
            ],
            title="Machine images",
        )
        output_table(
            profile.spec.machine_types,
            columns=[
                ("name", "Name"),
                ("cpu", "CPU"),
                ("memory", "Memory"),
                ("gpu", "GPU"),
                ("usable", "Usable"),
            ],
            title="Machine types",
        )
        output_table(
            [{"name": r.name, "zones": [z.name for z in r.zones]} for r in profile.spec.regions],
            columns=[("name", "Region"), ("zones", "Zones")],
            title="Regions",
        )

    except Exception as e:
        handle_error(e)
