from __future__ import annotations

import typer
from rich import print

from .common import get_api, handle_cli_errors, require_positive

app = typer.Typer(help="Inspect asynchronous operations.")


@app.command("show")
@handle_cli_errors
def show_operation(ctx: typer.Context, operation_id: str) -> None:
    """Show the current status of an operation."""

    operation = get_api(ctx).get_operation(operation_id)
    print(f"[bold]{operation.id or operation_id}[/bold] status={operation.status or '<empty>'}")
    if operation.http_status_code:
        print(f"http-status={operation.http_status_code}")
    if operation.error_code or operation.error_message:
        print(f"[red]{operation.error_code}[/red] {operation.error_message}")


@app.command("wait")
@handle_cli_errors
def wait_operation(
    ctx: typer.Context,
    operation_id: str,
    interval: float | None = typer.Option(
        None, help="Seconds between polls.", callback=require_positive
    ),
    timeout: float | None = typer.Option(None, help="Seconds before giving up.", min=0),
) -> None:
    """Block until an operation completes."""

    api = get_api(ctx)
    if interval is not None:
        api.poller_interval = interval
    if timeout is not None:
        api.poller_timeout = timeout
    api.wait_for_operation(operation_id)
    print(f"[green]Operation {operation_id} succeeded[/green]")
