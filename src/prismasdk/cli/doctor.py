"""Diagnostic commands for verifying prismasdk configuration."""

from __future__ import annotations

import os

import typer
from rich import print
from rich.markup import escape

from ..auth.factory import API_ENV, ProviderKind
from ..clients.namespaces import NamespaceClient
from .common import get_config_from_context, handle_cli_errors, mask_secret, resolve_provider_config


def register(app: typer.Typer) -> None:
    app.command("doctor")(doctor)


@handle_cli_errors
def doctor(
    ctx: typer.Context,
    check_api: bool = typer.Option(
        True,
        help="List child namespaces to confirm the API accepts the token (disable with --no-check-api)",
    ),
) -> None:
    """Validate prismasdk configuration.

    Args:
        ctx: Active Typer context containing user configuration state.
        check_api: When ``True`` lists child namespaces with the acquired token.
    """

    cfg = get_config_from_context(ctx)
    ok = True
    if cfg.default_profile:
        print(f"[green]Default profile:[/green] {cfg.default_profile}")
    else:
        print("[yellow]No default profile configured.[/yellow]")
    if os.getenv(API_ENV):
        print(f"[green]{API_ENV} override detected.[/green]")

    try:
        provider_config = resolve_provider_config(ctx.ensure_object(dict).get("profile"), config=cfg)
    except typer.BadParameter as exc:
        print(f"[red]Configuration incomplete:[/red] {escape(exc.message)}")
        raise typer.Exit(code=1) from None

    print(f"Provider: {ProviderKind(provider_config.provider).value}  API: {provider_config.api or '-'}")

    token_provider = None
    try:
        token_provider = provider_config.build_token_provider()
        token = token_provider.token()
    except Exception as exc:
        print(f"[red]Token acquisition failed:[/red] {escape(str(exc))}")
        ok = False
        token_provider = None
    else:
        print(f"[green]Token acquisition successful:[/green] {mask_secret(token)}")

    if check_api and token_provider is not None:
        if not provider_config.api or not provider_config.namespace:
            print("[yellow]Skipping API probe: API or namespace unknown.[/yellow]")
        else:
            try:
                with NamespaceClient(
                    provider_config.api,
                    provider_config.namespace,
                    token_provider,
                    client=provider_config.get_http_client(),
                ) as client:
                    count = len(client.namespaces)
                print(f"[green]API reachable:[/green] {count} child namespaces")
            except Exception as exc:
                print(f"[red]API probe failed:[/red] {escape(str(exc))}")
                ok = False

    raise typer.Exit(code=0 if ok else 1)


__all__ = ["register", "doctor"]
