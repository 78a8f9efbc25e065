"""Commands for namespace management and configuration import."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
import yaml
from rich import print

from ..clients.namespaces import NamespaceClient
from ..models.namespace import Namespace, NamespaceType, TrafficAction
from .common import get_provider_config, handle_cli_errors

app = typer.Typer(help="Manage child namespaces")


def register(root: typer.Typer) -> None:
    root.command("import")(import_config)


def _client(ctx: typer.Context, *, sync: bool = True) -> NamespaceClient:
    return get_provider_config(ctx).build_namespace_client(sync=sync)


def _load_document(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            payload = yaml.safe_load(text)
        else:
            payload = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise typer.BadParameter(f"Invalid import file {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise typer.BadParameter("Import file must contain a mapping with 'label' and 'data'.")
    return payload


@app.command("list")
@handle_cli_errors
def namespace_list(ctx: typer.Context) -> None:
    """List the child namespaces of the configured namespace."""

    with _client(ctx) as client:
        for namespace in client.namespaces:
            kind = namespace.namespace_type.value if namespace.namespace_type else "-"
            print(f"{namespace.name}\t{namespace.id or '-'}\t{kind}")


@app.command("create")
@handle_cli_errors
def namespace_create(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Child namespace name"),
    group: NamespaceType | None = typer.Option(None, "--type", help="Namespace type"),
    description: str | None = typer.Option(None, help="Free-form description"),
    incoming: TrafficAction | None = typer.Option(None, help="Default incoming traffic action"),
    outgoing: TrafficAction | None = typer.Option(None, help="Default outgoing traffic action"),
) -> None:
    """Create a child namespace unless one with that name exists."""

    namespace = Namespace(
        name=name,
        namespace_type=group,
        description=description,
        default_incoming_action=incoming,
        default_outgoing_action=outgoing,
    )
    with _client(ctx) as client:
        created = client.create_namespace(namespace)
    print(f"[green]Namespace ready:[/green] {created.name} id={created.id}")


@app.command("delete")
@handle_cli_errors
def namespace_delete(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Child namespace name"),
) -> None:
    """Delete a child namespace by name."""

    with _client(ctx) as client:
        client.delete_namespace(name)
    print(f"[green]Namespace deleted:[/green] {name}")


@handle_cli_errors
def import_config(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="JSON or YAML file holding the policy bundle"),
) -> None:
    """Import a labelled policy bundle into the configured namespace."""

    payload = _load_document(path)
    with _client(ctx, sync=False) as client:
        client.import_config(payload)
    print(f"[green]Imported:[/green] {payload.get('label')}")


__all__ = ["app", "import_config", "namespace_create", "namespace_delete", "namespace_list", "register"]
