"""Commands for inspecting and mutating stored azsm profiles."""

from __future__ import annotations

from dataclasses import asdict

import typer
from rich import print

from ..config import (
    DEFAULT_POLLER_INTERVAL,
    DEFAULT_POLLER_TIMEOUT,
    DEFAULT_RETRY_STATUSES,
    ConfigStore,
    Profile,
)
from .common import handle_cli_errors

app = typer.Typer(help="Profiles & configuration")


@app.command("create")
@handle_cli_errors
def profile_create(
    name: str = typer.Argument(..., help="Profile name"),
    subscription_id: str = typer.Option(..., help="Azure subscription id"),
    certificate: str | None = typer.Option(
        None, help="PEM file holding the management certificate and its key"
    ),
    location: str | None = typer.Option(None, help="Location used to pick the API endpoint"),
    poller_interval: float = typer.Option(
        DEFAULT_POLLER_INTERVAL, help="Seconds between operation status polls (0 disables)"
    ),
    poller_timeout: float = typer.Option(
        DEFAULT_POLLER_TIMEOUT, help="Seconds to wait for an operation before giving up"
    ),
    retry_max: int = typer.Option(0, help="Retries of a single request on retryable codes"),
    retry_status: list[int] = typer.Option(
        DEFAULT_RETRY_STATUSES, help="HTTP status code that triggers a request retry"
    ),
    retry_delay: float = typer.Option(0.0, help="Seconds between request retries"),
    set_default: bool = typer.Option(False, "--set-default", help="Make this the default"),
) -> None:
    """Create or replace a profile."""

    profile = Profile(
        name=name,
        subscription_id=subscription_id,
        certificate_path=certificate,
        location=location,
        poller_interval=poller_interval,
        poller_timeout=poller_timeout,
        retry_max=retry_max,
        retry_statuses=list(retry_status),
        retry_delay=retry_delay,
    )
    cfg = ConfigStore().add_or_update_profile(profile, set_default=set_default)
    suffix = " (default)" if cfg.default_profile == name else ""
    print(f"[green]Saved profile[/green] {name}{suffix}")


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
    print(asdict(profile))


@app.command("use")
@handle_cli_errors
def profile_use(name: str = typer.Argument(..., help="Profile name")) -> None:
    """Set the default profile."""

    try:
        ConfigStore().set_default_profile(name)
    except KeyError as exc:
        raise typer.BadParameter(str(exc.args[0])) from exc
    print(f"Default profile set to {name}")


@app.command("delete")
@handle_cli_errors
def profile_delete(name: str = typer.Argument(..., help="Profile name")) -> None:
    """Remove a stored profile."""

    ConfigStore().delete_profile(name)
    print(f"Deleted profile {name}")
