from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Optional

from defusedxml import ElementTree
from defusedxml.common import DefusedXmlException

if TYPE_CHECKING:
    from .models.operation import OperationStatus


def _reason(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


class AzsmError(Exception):
    """Base error for azsm."""


class TransportError(AzsmError):
    """Raised when an exchange fails below the HTTP layer."""


class OperationDecodeError(AzsmError):
    """Raised when an operation status document cannot be decoded."""


class PollTimeoutError(AzsmError, TimeoutError):
    """Raised when polling gives up waiting for an asynchronous operation."""

    def __init__(self, timeout: float) -> None:
        super().__init__("polling timed out waiting for an asynchronous operation")
        self.timeout = timeout


class HttpError(AzsmError):
    def __init__(
        self, status_code: int, description: str, *, details: Optional[Any] = None
    ) -> None:
        super().__init__(description)
        self.status_code = status_code
        self.description = description
        self.details = details

    def __str__(self) -> str:
        return f"{self.description} ({self.status_code}: {_reason(self.status_code)})"


class ServerError(HttpError):
    """Generic HTTP failure without any structured detail from the server."""


class AzureError(HttpError):
    """HTTP failure carrying an Azure-defined error code and message."""

    def __init__(
        self,
        status_code: int,
        description: str,
        *,
        code: str = "",
        message: str = "",
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(status_code, description, details=details)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        status = self.status_code
        return (
            f"{self.description}: {self.code} - {self.message} "
            f"(http code {status}: {_reason(status)})"
        )


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def new_http_error(status_code: int, body: bytes | str | None, description: str) -> HttpError:
    """Return the :class:`HttpError` flavour matching ``body``.

    Well-formed XML bodies are read as ``<Error><Code/><Message/></Error>``
    documents; anything else yields a :class:`ServerError`.
    """

    raw = body or b""
    details = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    try:
        root = ElementTree.fromstring(raw)
    except (ElementTree.ParseError, DefusedXmlException):
        return ServerError(status_code, description, details=details or None)
    fields = {_local_name(child.tag): (child.text or "").strip() for child in root}
    return AzureError(
        status_code,
        description,
        code=fields.get("Code", ""),
        message=fields.get("Message", ""),
        details=details,
    )


def azure_error_from_operation(operation: OperationStatus) -> AzureError:
    """Build the error reported for an asynchronous operation that did not succeed."""

    if operation.succeeded:
        raise ValueError("interpreting a succeeded operation as an asynchronous failure")
    description = "asynchronous operation failed"
    if not operation.failed:
        description = f"asynchronous operation ended with status {operation.status!r}"
    return AzureError(
        operation.http_status_code,
        description,
        code=operation.error_code,
        message=operation.error_message,
    )


def extend_error(err: Exception, prefix: str) -> Exception:
    """Return ``err`` with ``prefix`` prepended to its description.

    HTTP errors keep their concrete type, status code and Azure error fields so
    callers can still test them with :func:`is_not_found_error`.
    """

    if isinstance(err, HttpError):
        # __init__ signatures differ from args, so copy the instance state directly.
        extended = type(err).__new__(type(err))
        extended.__dict__.update(err.__dict__)
        extended.description = prefix + err.description
        extended.args = (extended.description,)
        return extended
    return AzsmError(f"{prefix}{err}")


def is_not_found_error(err: BaseException | None) -> bool:
    return isinstance(err, HttpError) and err.status_code == HTTPStatus.NOT_FOUND


__all__ = [
    "AzsmError",
    "AzureError",
    "HttpError",
    "OperationDecodeError",
    "PollTimeoutError",
    "ServerError",
    "TransportError",
    "azure_error_from_operation",
    "extend_error",
    "is_not_found_error",
    "new_http_error",
]
