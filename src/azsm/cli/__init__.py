from __future__ import annotations

import logging

import typer

from . import operation, profile, resources

app = typer.Typer(help="Azure service management CLI")


def _register_sub_app(name: str, sub_app: typer.Typer) -> None:
    app.add_typer(sub_app, name=name)


_register_sub_app("profile", profile.app)
_register_sub_app("operation", operation.app)
_register_sub_app("disk", resources.disk_app)
_register_sub_app("service", resources.service_app)
_register_sub_app("deployment", resources.deployment_app)
_register_sub_app("storage", resources.storage_app)
_register_sub_app("role", resources.role_app)


@app.callback()
def common(
    ctx: typer.Context,
    profile_name: str | None = typer.Option(
        None, "--profile", help="Profile to use instead of the default one."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every request."),
) -> None:
    """Initialize shared Typer context state."""

    ctx.ensure_object(dict)
    ctx.obj.setdefault("api", None)
    ctx.obj["profile"] = profile_name
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )


def main() -> None:
    app()


__all__ = ["app", "main", "operation", "profile", "resources"]
