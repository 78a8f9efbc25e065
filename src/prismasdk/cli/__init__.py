from __future__ import annotations

import logging
import os

import typer

from . import doctor, namespace, profile, token
from .common import DEBUG_ENV

app = typer.Typer(help="Prisma policy API CLI")


def _register_sub_app(name: str, sub_app: typer.Typer) -> None:
    app.add_typer(sub_app, name=name)


_register_sub_app("token", token.app)
_register_sub_app("namespace", namespace.app)
_register_sub_app("profile", profile.app)

doctor.register(app)
namespace.register(app)


@app.callback()
def common(
    ctx: typer.Context,
    profile_name: str | None = typer.Option(
        None, "--profile", "-p", help="Stored profile to use instead of the default"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    """Initialize shared Typer context state."""

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile_name
    if verbose or os.getenv(DEBUG_ENV):
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )


__all__ = ["app", "doctor", "namespace", "profile", "token"]
