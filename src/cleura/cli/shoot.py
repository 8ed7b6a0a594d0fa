"""Shoot cluster CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import tomli_w
import typer
from rich.console import Console

from cleura.cli._utils import (
    get_client,
    get_json_flag,
    handle_error,
    load_spec_file,
    output_json,
    output_table,
)
from cleura.models.cluster import ClusterObserved, ClusterRef, ClusterSpec
from cleura.reconcile.orchestrator import ChangeSet

app = typer.Typer(help="Shoot cluster commands.")
console = Console()

WORKER_GROUP_COLUMNS = [
    ("name", "Name"),
    ("machine_type", "Machine"),
    ("image_version", "Image"),
    ("min_nodes", "Min"),
    ("max_nodes", "Max"),
    ("zones", "Zones"),
]


def _print_cluster(observed: ClusterObserved) -> None:
    op = observed.last_operation
    console.print(f"[bold]{observed.name}[/bold] ({observed.ref})")
    console.print(f"  UID: {observed.uid or '-'}")
    console.print(f"  Kubernetes: {observed.kubernetes_version or '-'}")
    console.print(f"  Hibernated: {'Yes' if observed.hibernated else 'No'}")
    if op is not None:
        console.print(f"  Last operation: {op.type} {op.state} ({op.progress}%)")
    for condition in observed.conditions:
        colour = "green" if condition.status == "True" else "yellow"
        console.print(f"  [{colour}]{condition.type}[/{colour}]: {condition.status}")
    if observed.worker_groups:
        output_table(observed.worker_groups, WORKER_GROUP_COLUMNS, title="Worker groups")


def _print_changes(changes: ChangeSet) -> None:
    desired = changes.desired
    if not changes.exists:
        console.print(f"[green]+ create cluster {desired.ref}[/green]")
        console.print(f"    kubernetes {desired.kubernetes_version}")
    elif changes.is_empty:
        console.print(f"[dim]Cluster {desired.ref} is up to date.[/dim]")
        return

    for field in changes.cluster_update.changed_fields:
        console.print(f"[yellow]~ update {field}[/yellow]")

    plan = changes.worker_groups
    for group in plan.to_modify:
        console.print(f"[yellow]~ update worker group {group.name}[/yellow]")
    for group in plan.to_create:
        console.print(f"[green]+ create worker group {group.name}[/green]")
    for group in plan.to_delete:
        console.print(f"[red]- delete worker group {group.name}[/red]")


def _changes_as_dict(changes: ChangeSet) -> dict:
    plan = changes.worker_groups
    return {
        "cluster": str(changes.desired.ref),
        "exists": changes.exists,
        "cluster_update": changes.cluster_update.model_dump(mode="json", exclude_none=True),
        "worker_groups": {
            "modify": [g.name for g in plan.to_modify],
            "create": [g.name for g in plan.to_create],
            "delete": [g.name for g in plan.to_delete],
        },
    }


@app.command("get")
def get(
    ctx: typer.Context,
    cluster_id: str = typer.Argument(..., help="Cluster as domain,name,region,project"),
) -> None:
    """Show the current state of a cluster."""
    try:
        ref = ClusterRef.parse(cluster_id)
    except Exception as e:
        handle_error(e)

    client = get_client()
    try:
        with client:
            observed = client.fetch_cluster(ref)

        if get_json_flag(ctx):
            output_json(observed)
        else:
            _print_cluster(observed)

    except Exception as e:
        handle_error(e)


@app.command("plan")
def plan(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Cluster spec file (TOML or JSON)", exists=True),
) -> None:
    """Show what apply would change."""
    try:
        spec = load_spec_file(file)
    except Exception as e:
        handle_error(e)

    client = get_client()
    try:
        with client:
            changes = client.reconciler().plan(spec)

        if get_json_flag(ctx):
            output_json(_changes_as_dict(changes))
        else:
            _print_changes(changes)

    except Exception as e:
        handle_error(e)


@app.command("apply")
def apply(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Cluster spec file (TOML or JSON)", exists=True),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Seconds to wait for the backend (default from config)",
    ),
) -> None:
    """Create or update a cluster to match a spec file and wait for it to settle."""
    try:
        spec = load_spec_file(file)
    except Exception as e:
        handle_error(e)

    client = get_client()
    try:
        with client:
            with console.status(f"Applying {spec.ref}..."):
                observed = client.reconciler().apply(spec, timeout=timeout)

        if get_json_flag(ctx):
            output_json(observed)
        else:
            console.print(f"[green]Applied:[/green] {observed.ref}")
            _print_cluster(observed)

    except Exception as e:
        handle_error(e)


@app.command("delete")
def delete(
    cluster_id: str = typer.Argument(..., help="Cluster as domain,name,region,project"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    timeout: float | None = typer.Option(None, "--timeout", "-t", help="Seconds to wait"),
) -> None:
    """Delete a cluster and wait until it is gone."""
    try:
        ref = ClusterRef.parse(cluster_id)
    except Exception as e:
        handle_error(e)

    if not yes and not typer.confirm(f"Delete cluster {ref.name}?", default=False):
        raise typer.Abort()

    client = get_client()
    try:
        with client:
            with console.status(f"Deleting {ref}..."):
                client.reconciler().delete(ref, timeout=timeout)
        console.print(f"[green]Deleted:[/green] {ref}")

    except Exception as e:
        handle_error(e)


@app.command("import")
def import_cluster(
    ctx: typer.Context,
    cluster_id: str = typer.Argument(..., help="Cluster as domain,name,region,project"),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the spec to this file (.toml or .json)",
    ),
) -> None:
    """Generate a spec file from an existing cluster."""
    client = get_client()
    try:
        with client:
            imported = client.reconciler().import_cluster(cluster_id)

        if output is not None:
            _write_spec(imported.spec, output)
            console.print(f"[green]Wrote spec for {imported.observed.ref} to {output}[/green]")
        elif get_json_flag(ctx):
            output_json(imported.spec)
        else:
            console.print(tomli_w.dumps(_spec_document(imported.spec)), markup=False)

    except Exception as e:
        handle_error(e)


@app.command("kubeconfig")
def kubeconfig(
    cluster_id: str = typer.Argument(..., help="Cluster as domain,name,region,project"),
    duration: int = typer.Option(3600, "--duration", "-d", help="Validity in seconds"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to this file"),
) -> None:
    """Generate a kubeconfig for a cluster."""
    try:
        ref = ClusterRef.parse(cluster_id)
    except Exception as e:
        handle_error(e)

    client = get_client()
    try:
        with client:
            config = client.shoots.generate_kubeconfig(ref, duration=duration)

        if output is not None:
            output.write_text(config)
            output.chmod(0o600)
            console.print(f"[green]Wrote kubeconfig to {output}[/green]")
        else:
            console.print(config, markup=False, highlight=False, soft_wrap=True)

    except Exception as e:
        handle_error(e)


def _spec_document(spec: ClusterSpec) -> dict:
    return {"cluster": spec.model_dump(mode="json", exclude_none=True)}


def _write_spec(spec: ClusterSpec, path: Path) -> None:
    if path.suffix == ".json":
        path.write_text(json.dumps(_spec_document(spec), indent=2) + "\n")
    else:
        path.write_text(tomli_w.dumps(_spec_document(spec)))
