"""Commands that mutate cloud resources and wait for the resulting operation."""

from __future__ import annotations

import typer
from rich import print

from ..config import DEFAULT_DELETE_DISK_POLLING, PollingConfig
from ..models.management import DeleteDiskRequest, RoleRequest
from .common import (
    NO_WAIT_OPTION,
    apply_no_wait,
    get_api,
    handle_cli_errors,
    require_positive,
)

disk_app = typer.Typer(help="Manage OS and data disks.")
service_app = typer.Typer(help="Manage hosted services.")
deployment_app = typer.Typer(help="Manage hosted service deployments.")
storage_app = typer.Typer(help="Manage storage accounts.")
role_app = typer.Typer(help="Start, stop and restart roles (virtual machines).")


@disk_app.command("delete")
@handle_cli_errors
def delete_disk(
    ctx: typer.Context,
    disk_name: str,
    delete_blob: bool = typer.Option(
        False, "--delete-blob", help="Also delete the blob backing the disk."
    ),
    interval: float = typer.Option(
        DEFAULT_DELETE_DISK_POLLING.interval,
        help="Seconds between deletion attempts while the disk is still in use.",
        callback=require_positive,
    ),
    timeout: float = typer.Option(
        DEFAULT_DELETE_DISK_POLLING.timeout,
        help="Seconds to keep retrying before giving up.",
        min=0,
    ),
) -> None:
    """Delete a disk, retrying while it is still attached to a removed VM."""

    api = get_api(ctx)
    api.delete_disk(
        DeleteDiskRequest(disk_name=disk_name, delete_blob=delete_blob),
        polling=PollingConfig(interval=interval, timeout=timeout),
    )
    print(f"[green]Disk {disk_name} deleted[/green]")


@service_app.command("delete")
@handle_cli_errors
def delete_hosted_service(
    ctx: typer.Context, service_name: str, no_wait: bool = NO_WAIT_OPTION
) -> None:
    """Delete a hosted service."""

    api = get_api(ctx)
    apply_no_wait(api, no_wait)
    api.delete_hosted_service(service_name)
    print(f"[green]Hosted service {service_name} deleted[/green]")


@deployment_app.command("delete")
@handle_cli_errors
def delete_deployment(
    ctx: typer.Context,
    service_name: str,
    deployment_name: str,
    no_wait: bool = NO_WAIT_OPTION,
) -> None:
    """Delete a deployment from a hosted service."""

    api = get_api(ctx)
    apply_no_wait(api, no_wait)
    api.delete_deployment(service_name, deployment_name)
    print(f"[green]Deployment {deployment_name} deleted[/green]")


@storage_app.command("delete")
@handle_cli_errors
def delete_storage_account(
    ctx: typer.Context, account_name: str, no_wait: bool = NO_WAIT_OPTION
) -> None:
    """Delete a storage account."""

    api = get_api(ctx)
    apply_no_wait(api, no_wait)
    api.delete_storage_account(account_name)
    print(f"[green]Storage account {account_name} deleted[/green]")


def _role_command(action: str, verb: str) -> None:
    @role_app.command(action)
    @handle_cli_errors
    def command(
        ctx: typer.Context,
        service_name: str,
        deployment_name: str,
        role_name: str,
        no_wait: bool = NO_WAIT_OPTION,
    ) -> None:
        api = get_api(ctx)
        apply_no_wait(api, no_wait)
        request = RoleRequest(
            service_name=service_name, deployment_name=deployment_name, role_name=role_name
        )
        getattr(api, f"{action}_role")(request)
        print(f"[green]Role {role_name} {verb}[/green]")

    command.__doc__ = f"{action.capitalize()} a role."


_role_command("start", "started")
_role_command("shutdown", "shut down")
_role_command("restart", "restarted")
