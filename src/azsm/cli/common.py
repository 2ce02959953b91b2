from __future__ import annotations

import os
from collections.abc import Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar, cast

import typer
from rich.console import Console

from ..clients.management import ManagementAPI
from ..config import ConfigStore, resolve_profile
from ..errors import AzsmError, HttpError, PollTimeoutError

console = Console()
err_console = Console(stderr=True)


def _render_http_error(exc: HttpError) -> None:
    err_console.print(f"[red]Error:[/red] {exc}")
    details = getattr(exc, "details", None)
    if details:
        err_console.print(str(details))


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
        except PollTimeoutError as exc:
            err_console.print(f"[red]Error:[/red] {exc}")
            err_console.print(
                "The operation may still complete server-side; check it with `azsm operation show`."
            )
            raise typer.Exit(1) from None
        except AzsmError as exc:
            err_console.print(f"[red]Error:[/red] {exc}")
            raise typer.Exit(1) from None
        except Exception as exc:
            if os.getenv("AZSM_DEBUG"):
                raise
            err_console.print(f"[red]Error:[/red] Unexpected failure: {exc}")
            err_console.print("Set AZSM_DEBUG=1 for a stack trace.")
            raise typer.Exit(1) from exc

    return wrapper


def get_api(ctx: typer.Context) -> ManagementAPI:
    """Return the :class:`ManagementAPI` cached on ``ctx``, building it on first use."""

    ctx_obj = cast(dict[str, Any], ctx.ensure_object(dict))
    api = ctx_obj.get("api")
    if isinstance(api, ManagementAPI):
        return api

    try:
        profile = resolve_profile(ctx_obj.get("profile"), store=ConfigStore())
    except KeyError as exc:
        raise typer.BadParameter(str(exc.args[0])) from exc
    if not profile.subscription_id:
        raise typer.BadParameter(
            "No subscription configured. Export AZSM_SUBSCRIPTION_ID or run "
            "`azsm profile create NAME --subscription-id <id>`."
        )
    api = ManagementAPI.from_profile(profile)
    ctx_obj["api"] = api
    return api


NO_WAIT_OPTION = typer.Option(
    False, "--no-wait", help="Return once the request is accepted instead of polling."
)


def apply_no_wait(api: ManagementAPI, no_wait: bool) -> None:
    if no_wait:
        api.poller_interval = 0


def require_positive(value: float | None) -> float | None:
    """Typer callback for polling intervals, which must be positive."""

    if value is not None and value <= 0:
        raise typer.BadParameter("must be greater than 0")
    return value


__all__ = [
    "NO_WAIT_OPTION",
    "apply_no_wait",
    "console",
    "err_console",
    "get_api",
    "handle_cli_errors",
    "require_positive",
]
