from __future__ import annotations

import json
import os
from collections.abc import Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar, cast

import typer
from rich.console import Console
from rich.markup import escape

from ..auth.factory import API_ENV, PROVIDER_ENV, ProviderConfig
from ..config import ConfigData, ConfigStore, EncryptedConfigError
from ..errors import ConfigurationError, HttpError, PrismaError, TokenExpiredError, TransportError

console = Console()

DEBUG_ENV = "PRISMA_DEBUG"
PROFILE_ENV = "PRISMA_PROFILE"


def _render_http_error(exc: HttpError) -> None:
    console.print(f"[red]Error:[/red] {escape(str(exc))}")
    details = getattr(exc, "details", None)
    if details:
        snippet = details
        if isinstance(details, (dict, list)):
            snippet = json.dumps(details, indent=2)
        console.print(str(snippet), markup=False)


CommandParams = ParamSpec("CommandParams")
CommandReturn = TypeVar("CommandReturn")


def handle_cli_errors(
    func: Callable[CommandParams, CommandReturn],
) -> Callable[CommandParams, CommandReturn]:
    @wraps(func)
    def wrapper(*args: CommandParams.args, **kwargs: CommandParams.kwargs) -> CommandReturn:
        try:
            return func(*args, **kwargs)
        except typer.BadParameter:
            raise
        except typer.Exit:
            raise
        except HttpError as exc:
            _render_http_error(exc)
            raise typer.Exit(1) from None
        except EncryptedConfigError as exc:
            console.print(f"[red]Error:[/red] {escape(str(exc))}")
            console.print(
                "Restore the original key by exporting PRISMA_CONFIG_ENCRYPTION_KEY before rerunning the command."
            )
            raise typer.Exit(1) from None
        except ConfigurationError as exc:
            console.print(f"[red]Error:[/red] Invalid configuration: {escape(str(exc))}")
            console.print(
                "Run `prismax profile add NAME --api URL --namespace PATH` or export PRISMA_API and PRISMA_NAMESPACE."
            )
            raise typer.Exit(1) from None
        except TokenExpiredError as exc:
            console.print(f"[red]Error:[/red] {escape(str(exc))}; obtain a new token and export it again.")
            raise typer.Exit(1) from None
        except TransportError as exc:
            console.print(f"[red]Error:[/red] Network failure: {escape(str(exc))}")
            raise typer.Exit(1) from None
        except PrismaError as exc:
            console.print(f"[red]Error:[/red] {escape(str(exc))}")
            raise typer.Exit(1) from None
        except Exception as exc:
            if os.getenv(DEBUG_ENV):
                raise
            console.print(f"[red]Error:[/red] Unexpected failure: {escape(str(exc))}")
            console.print(f"Set {DEBUG_ENV}=1 for a stack trace.")
            raise typer.Exit(1) from exc

    return wrapper


def mask_secret(value: str | None, *, keep: int = 6) -> str:
    """Return a short preview of ``value`` that is safe to print."""

    if not value:
        return ""
    if len(value) <= keep * 2:
        return "*" * 8
    return f"{value[:keep]}...({len(value)} chars)"


def get_config_from_context(ctx: typer.Context, *, store: ConfigStore | None = None) -> ConfigData:
    """Return a cached :class:`ConfigData` instance stored on ``ctx``."""

    ctx_obj = cast(dict[str, Any], ctx.ensure_object(dict))
    existing = ctx_obj.get("config")
    if isinstance(existing, ConfigData):
        return existing

    cfg = (store or ConfigStore()).load()
    ctx_obj["config"] = cfg
    return cfg


def resolve_provider_config(
    profile_name: str | None = None, *, config: ConfigData | None = None
) -> ProviderConfig:
    """Resolve the provider configuration for a CLI command.

    Resolution order is:

    1. The profile named by ``--profile`` (or ``PRISMA_PROFILE``).
    2. The environment, when ``PRISMA_API`` or ``PRISMA_PROVIDER`` is set.
    3. The default profile of the config store.
    """

    name = profile_name or os.getenv(PROFILE_ENV)
    if name:
        cfg = config or ConfigStore().load()
        profile = cfg.profiles.get(name)
        if profile is None:
            raise typer.BadParameter(f"Profile '{name}' not found")
        return profile.to_provider_config()

    if os.getenv(API_ENV) or os.getenv(PROVIDER_ENV):
        return ProviderConfig.from_env()

    cfg = config or ConfigStore().load()
    if cfg.default_profile and cfg.default_profile in cfg.profiles:
        return cfg.profiles[cfg.default_profile].to_provider_config()

    raise typer.BadParameter(
        "No profile selected: pass --profile, export PRISMA_API, or run `prismax profile use NAME`."
    )


def get_provider_config(ctx: typer.Context) -> ProviderConfig:
    ctx_obj = cast(dict[str, Any], ctx.ensure_object(dict))
    existing = ctx_obj.get("provider_config")
    if isinstance(existing, ProviderConfig):
        return existing

    profile_name = ctx_obj.get("profile")
    config: ConfigData | None = None
    if profile_name or not (os.getenv(API_ENV) or os.getenv(PROVIDER_ENV)):
        config = get_config_from_context(ctx)
    provider_config = resolve_provider_config(profile_name, config=config)
    ctx_obj["provider_config"] = provider_config
    return provider_config


__all__ = [
    "console",
    "get_config_from_context",
    "get_provider_config",
    "handle_cli_errors",
    "mask_secret",
    "resolve_provider_config",
]
