"""Commands for acquiring and inspecting API tokens."""

from __future__ import annotations

from datetime import datetime, timezone

import typer
from rich import print

from ..auth.external import ExternalTokenProvider
from ..auth.provider import ExchangeTokenProvider
from .common import get_provider_config, handle_cli_errors, mask_secret

app = typer.Typer(help="Acquire and inspect API tokens")


def _format_exp(exp: int) -> str:
    return datetime.fromtimestamp(exp, tz=timezone.utc).isoformat()


@app.command("show")
@handle_cli_errors
def token_show(
    ctx: typer.Context,
    reveal: bool = typer.Option(False, "--reveal", help="Print the full bearer token"),
) -> None:
    """Acquire a token and print a masked preview."""

    provider = get_provider_config(ctx).build_token_provider()
    token = provider.token()
    print(token if reveal else mask_secret(token))


@app.command("inspect")
@handle_cli_errors
def token_inspect(ctx: typer.Context) -> None:
    """Acquire a token and print its decoded claims."""

    provider = get_provider_config(ctx).build_token_provider()
    provider.token()
    if isinstance(provider, ExchangeTokenProvider):
        issued = provider.cached_token
        if issued is None:
            raise typer.BadParameter("Token was not cached after acquisition")
        claims = issued.claims
        rows = {
            "issuer": claims.iss,
            "subject": claims.sub,
            "realm": claims.realm or issued.realm or "",
            "expires": _format_exp(claims.exp),
            "account": claims.data.get(provider.account_claim),
        }
    elif isinstance(provider, ExternalTokenProvider):
        external = provider.claims
        rows = {
            "issuer": external.iss,
            "subject": external.sub,
            "realm": external.realm or external.data.realm,
            "expires": _format_exp(external.exp),
            "account": "",
        }
    else:
        raise typer.BadParameter("Token provider does not expose claims")
    for key, value in rows.items():
        print(f"[bold]{key}[/bold]: {value or '-'}")


@app.command("account-id")
@handle_cli_errors
def token_account_id(ctx: typer.Context) -> None:
    """Print the cloud account ID carried by the token."""

    provider = get_provider_config(ctx).build_token_provider()
    print(provider.account_id())


__all__ = ["app", "token_account_id", "token_inspect", "token_show"]
