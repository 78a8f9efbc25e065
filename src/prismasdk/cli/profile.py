"""Commands for inspecting and mutating stored prismasdk profiles."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

import typer
from rich import print

from ..auth.factory import ProviderKind
from ..config import ConfigStore, Profile
from .common import handle_cli_errors

app = typer.Typer(help="Profiles & configuration")


MASK_PLACEHOLDER = "<hidden>"
SENSITIVE_KEYS = frozenset({"secret_access_key", "session_token", "token"})


@app.command("add")
@handle_cli_errors
def profile_add(
    name: str = typer.Argument(..., help="Profile name"),
    api: str = typer.Option(..., help="Policy API base URL"),
    namespace: str = typer.Option(..., help="Namespace path, e.g. /acme/prod"),
    provider: ProviderKind = typer.Option(ProviderKind.AWS, help="Credential provider"),
    access_key_id: str | None = typer.Option(None, help="AWS access key ID"),
    secret_access_key: str | None = typer.Option(None, help="AWS secret access key"),
    session_token: str | None = typer.Option(None, help="AWS session token"),
    token: str | None = typer.Option(None, help="Externally issued API token"),
    audience: str | None = typer.Option(None, help="GCP identity token audience"),
    set_default: bool = typer.Option(False, "--set-default", help="Make this the default profile"),
) -> None:
    """Create or replace a stored profile."""

    profile = Profile(
        name=name,
        api=api,
        namespace=namespace,
        provider=provider.value,
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        session_token=session_token,
        token=token,
        audience=audience,
    )
    cfg =ConfigStore().add_or_update_profile(profile, set_default=set_default)
    print(f"Profile '{name}' saved")
    if cfg.default_profile == name:
        print(f"Default profile set to {name}")


@app.command("list")
@handle_cli_errors
def profile_list() -> None:
    """Show all saved profiles, highlighting the default profile."""

    cfg = ConfigStore().load()
    for name in sorted(cfg.profiles):
        star = "*" if cfg.default_profile == name else " "
        print(f"{star} {name}")


@app.command("show")
@handle_cli_errors
def profile_show(name: str = typer.Argument(..., help="Profile name")) -> None:
    """Display the stored configuration for a profile."""

    cfg = ConfigStore().load()
    profile = cfg.profiles.get(name)
    if not profile:
        raise typer.BadParameter(f"Profile '{name}' not found")
    print(_mask_sensitive_fields(asdict(profile)))


@app.command("use")
@handle_cli_errors
def profile_use(name: str = typer.Argument(..., help="Profile name")) -> None:
    """Make ``name`` the default profile."""

    try:
        ConfigStore().set_default_profile(name)
    except KeyError:
        raise typer.BadParameter(f"Profile '{name}' not found") from None
    print(f"Default profile set to {name}")


@app.command("delete")
@handle_cli_errors
def profile_delete(name: str = typer.Argument(..., help="Profile name")) -> None:
    try:
        ConfigStore().delete_profile(name)
    except KeyError:
        raise typer.BadParameter(f"Profile '{name}' not found") from None
    print(f"Profile '{name}' deleted")


def _mask_sensitive_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with sensitive keys masked."""

    masked = dict(data)
    for key in masked:
        if key in SENSITIVE_KEYS and masked[key] not in (None, ""):
            masked[key] = MASK_PLACEHOLDER
    return masked


__all__ = [
    "MASK_PLACEHOLDER",
    "app",
    "profile_add",
    "profile_delete",
    "profile_list",
    "profile_show",
    "profile_use",
]
