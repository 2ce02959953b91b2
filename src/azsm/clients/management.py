from __future__ import annotations

import logging
from http import HTTPStatus
from types import TracebackType
from urllib.parse import quote_plus

import httpx

from ..config import (
    DEFAULT_DELETE_DISK_POLLING,
    DEFAULT_POLLER_INTERVAL,
    DEFAULT_POLLER_TIMEOUT,
    PollingConfig,
    Profile,
)
from ..endpoints import get_endpoint, subscription_base_url
from ..errors import (
    AzsmError,
    HttpError,
    azure_error_from_operation,
    extend_error,
    is_not_found_error,
    new_http_error,
)
from ..http_client import NO_RETRY_POLICY, HttpClient, RetryPolicy
from ..models.management import (
    RESTART_ROLE_OPERATION,
    SHUTDOWN_ROLE_OPERATION,
    START_ROLE_OPERATION,
    DeleteDiskRequest,
    RoleRequest,
    role_operation_xml,
)
from ..models.operation import OperationStatus
from ..utils.disk_deletion import DiskDeletePoller
from ..utils.operation_monitor import (
    OPERATIONS_API_VERSION,
    OperationPoller,
    perform_operation_polling,
)
from ..utils.poller import perform_polling

logger = logging.getLogger(__name__)

OPERATION_ID_HEADER = "x-ms-request-id"

_SYNCHRONOUS_SUCCESS = frozenset({HTTPStatus.OK, HTTPStatus.CREATED, HTTPStatus.NO_CONTENT})


def check_path_components(*components: str) -> None:
    for component in components:
        if component != quote_plus(component):
            raise ValueError(f"'{component}' contains URI special characters")
        if component == "..":
            raise ValueError("'..' is not allowed")


def get_operation_id(response: httpx.Response) -> str:
    """Return the asynchronous operation id carried by ``response``."""

    operation_id = response.headers.get(OPERATION_ID_HEADER)
    if not operation_id:
        raise AzsmError(f"no operation header ({OPERATION_ID_HEADER}) found in response")
    return operation_id


class ManagementAPI:
    """Client for the Azure service management API.

    Mutating calls block until the asynchronous operation they trigger has
    finished.  Set ``poller_interval`` to 0 to disable polling: those calls then
    return as soon as the server accepts the request, and the caller has to deal
    with the operation possibly still running.
    """

    def __init__(
        self,
        subscription_id: str,
        *,
        certificate_path: str | None = None,
        location: str = "",
        retry_policy: RetryPolicy = NO_RETRY_POLICY,
        poller_interval: float = DEFAULT_POLLER_INTERVAL,
        poller_timeout: float = DEFAULT_POLLER_TIMEOUT,
        delete_disk_polling: PollingConfig = DEFAULT_DELETE_DISK_POLLING,
        http: HttpClient | None = None,
    ) -> None:
        self.subscription_id = subscription_id
        self.http = http or HttpClient(
            subscription_base_url(get_endpoint(location), subscription_id),
            cert=certificate_path,
            retry_policy=retry_policy,
        )
        self.poller_interval = poller_interval
        self.poller_timeout = poller_timeout
        self.delete_disk_polling = delete_disk_polling

    @classmethod
    def from_profile(cls, profile: Profile) -> ManagementAPI:
        if not profile.subscription_id:
            raise AzsmError(f"Profile '{profile.name}' has no subscription id")
        return cls(
            profile.subscription_id,
            certificate_path=profile.certificate_path,
            location=profile.location or "",
            retry_policy=RetryPolicy.build(
                profile.retry_max, profile.retry_statuses, profile.retry_delay
            ),
            poller_interval=profile.poller_interval,
            poller_timeout=profile.poller_timeout,
        )

    @property
    def retry_policy(self) -> RetryPolicy:
        return self.http.retry_policy

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> ManagementAPI:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # Asynchronous operations ----------------------------------------------------------

    def block_until_completed(self, response: httpx.Response) -> None:
        """Block until the operation started by ``response`` has completed.

        Synchronous successes return at once and synchronous failures raise at
        once; only an Accepted response leads to polling.
        """

        if response.status_code in _SYNCHRONOUS_SUCCESS:
            return
        if response.status_code != HTTPStatus.ACCEPTED:
            raise new_http_error(response.status_code, response.content, "request failed")

        if self.poller_interval == 0:
            logger.debug("Polling disabled; not waiting for the accepted operation")
            return
        try:
            operation_id = get_operation_id(response)
        except AzsmError as exc:
            raise AzsmError(f"could not interpret asynchronous response: {exc}") from exc
        self._wait(operation_id)

    def wait_for_operation(self, operation_id: str) -> None:
        """Poll an operation already known by id until it completes.

        Unlike :meth:`block_until_completed` this needs polling to be enabled.
        """

        check_path_components(operation_id)
        if self.poller_interval <= 0:
            raise AzsmError(
                f"cannot wait for operation {operation_id}: polling is disabled "
                f"(poller interval {self.poller_interval})"
            )
        self._wait(operation_id)

    def _wait(self, operation_id: str) -> None:
        logger.info("Waiting for asynchronous operation %s", operation_id)
        poller = OperationPoller(self, operation_id)
        operation = perform_operation_polling(poller, self.poller_interval, self.poller_timeout)
        logger.info("Operation %s finished with status %s", operation_id, operation.status)
        if not operation.succeeded:
            raise azure_error_from_operation(operation)

    def get_operation(self, operation_id: str) -> OperationStatus:
        """Fetch the current status of an asynchronous operation."""

        check_path_components(operation_id)
        resp = self.http.get(f"operations/{operation_id}", api_version=OPERATIONS_API_VERSION)
        return OperationStatus.from_xml(resp.content)

    # Deletions --------------------------------------------------------------------------

    def _delete(
        self, path: str, api_version: str, params: dict[str, str] | None = None
    ) -> None:
        try:
            resp = self.http.delete(path, api_version=api_version, params=params)
        except AzsmError as exc:
            if is_not_found_error(exc):
                logger.debug("%s already absent", path)
                return
            raise
        self.block_until_completed(resp)

    def delete_hosted_service(self, service_name: str) -> None:
        check_path_components(service_name)
        self._delete(f"services/hostedservices/{service_name}", "2010-10-28")

    def delete_deployment(self, service_name: str, deployment_name: str) -> None:
        check_path_components(service_name, deployment_name)
        self._delete(
            f"services/hostedservices/{service_name}/deployments/{deployment_name}",
            "2013-10-01",
        )

    def delete_storage_account(self, account_name: str) -> None:
        check_path_components(account_name)
        self._delete(f"services/storageservices/{account_name}", "2011-06-01")

    def delete_disk(
        self, request: DeleteDiskRequest, *, polling: PollingConfig | None = None
    ) -> None:
        """Delete a disk, retrying while the service still reports it attached.

        ``polling`` overrides :attr:`delete_disk_polling` for this call only.
        """

        check_path_components(request.disk_name)
        config = polling or self.delete_disk_polling
        poller = DiskDeletePoller(self, request.disk_name, request.delete_blob)
        try:
            perform_polling(poller, config.interval, config.timeout)
        except HttpError as exc:
            raise extend_error(exc, f"deleting disk {request.disk_name}: ") from exc

    def _delete_disk_once(self, disk_name: str, delete_blob: bool) -> None:
        params = {"comp": "media"} if delete_blob else None
        self._delete(f"services/disks/{disk_name}", "2012-08-01", params)

    # Role operations --------------------------------------------------------------------

    def _perform_role_operation(
        self, request: RoleRequest, api_version: str, operation_type: str
    ) -> None:
        check_path_components(request.service_name, request.deployment_name, request.role_name)
        path = (
            f"services/hostedservices/{request.service_name}/deployments/"
            f"{request.deployment_name}/roleinstances/{request.role_name}/Operations"
        )
        resp = self.http.post(
            path,
            api_version=api_version,
            content=role_operation_xml(operation_type),
            content_type="application/xml",
        )
        self.block_until_completed(resp)

    def start_role(self, request: RoleRequest) -> None:
        self._perform_role_operation(request, "2013-10-01", START_ROLE_OPERATION)

    def restart_role(self, request: RoleRequest) -> None:
        self._perform_role_operation(request, "2013-10-01", RESTART_ROLE_OPERATION)

    def shutdown_role(self, request: RoleRequest) -> None:
        self._perform_role_operation(request, "2013-10-01", SHUTDOWN_ROLE_OPERATION)
