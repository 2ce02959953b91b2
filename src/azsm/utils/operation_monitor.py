from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from ..errors import AzsmError
from ..models.operation import OperationStatus
from .poller import Poller, perform_polling

if TYPE_CHECKING:
    from ..clients.management import ManagementAPI

logger = logging.getLogger(__name__)

OPERATIONS_API_VERSION = "2009-10-01"


class OperationPoller:
    """Poll the status resource of one asynchronous operation until it completes.

    A status query answered with a non-2xx code is not fatal: the status
    endpoint itself is polled optimistically and the loop simply carries on.
    Transport failures and undecodable 2xx bodies end the poll.
    """

    def __init__(self, api: ManagementAPI, operation_id: str) -> None:
        self.api = api
        self.operation_id = operation_id

    def __repr__(self) -> str:
        return f"OperationPoller(operation_id={self.operation_id!r})"

    def probe(self) -> httpx.Response:
        return self.api.http.get(
            f"operations/{self.operation_id}",
            api_version=OPERATIONS_API_VERSION,
            raise_for_status=False,
        )

    def is_done(self, result: httpx.Response | None, error: AzsmError | None) -> bool:
        if error is not None:
            raise error
        if result is None:
            return False
        if 200 <= result.status_code < 300:
            return OperationStatus.from_xml(result.content).is_terminal
        logger.warning(
            "Status query for operation %s returned %d; still polling",
            self.operation_id,
            result.status_code,
        )
        return False


def perform_operation_polling(
    poller: Poller[httpx.Response], interval: float, timeout: float
) -> OperationStatus:
    """Run :func:`perform_polling` and decode the final status document."""

    response = perform_polling(poller, interval, timeout)
    return OperationStatus.from_xml(response.content if response is not None else None)


__all__ = ["OPERATIONS_API_VERSION", "OperationPoller", "perform_operation_polling"]
