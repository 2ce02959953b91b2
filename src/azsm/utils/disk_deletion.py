"""Poller used to delete a disk.

It takes an indeterminate time for a disk previously attached to a deleted
virtual machine to become "not in use" and thus available for deletion.  While
the server keeps answering with the "disk is currently in use" error the
deletion is simply retried, every 10 seconds for up to 30 minutes unless the
caller passes another :class:`~azsm.config.PollingConfig`.

Once the service stops reporting stale attachments this module can go away and
``ManagementAPI.delete_disk`` can issue a single deletion attempt.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from ..errors import AzsmError

if TYPE_CHECKING:
    from ..clients.management import ManagementAPI

logger = logging.getLogger(__name__)


def is_in_use_error(message: str, disk_name: str) -> bool:
    """Return whether ``message`` reports ``disk_name`` as attached to a VM.

    A real-world example of the error in question::

        BadRequest - A disk with name gwacldiske5w7lkj is currently in use
        by virtual machine gwaclrolemvo1yab running within hosted service
        gwacl623yosxtppsa9577xy5, deployment gwaclmachinewes4n64f. (http
        code 400: Bad Request)
    """

    pattern = (
        f"BadRequest - A disk with name {re.escape(disk_name)} "
        "is currently in use by virtual machine.*"
    )
    return re.search(pattern, message) is not None


class DiskDeletePoller:
    def __init__(self, api: ManagementAPI, disk_name: str, delete_blob: bool = False) -> None:
        self.api = api
        self.disk_name = disk_name
        self.delete_blob = delete_blob

    def __repr__(self) -> str:
        return f"DiskDeletePoller(disk_name={self.disk_name!r}, delete_blob={self.delete_blob})"

    def probe(self) -> None:
        self.api._delete_disk_once(self.disk_name, self.delete_blob)

    def is_done(self, result: None, error: AzsmError | None) -> bool:
        if error is None:
            return True
        if is_in_use_error(str(error), self.disk_name):
            logger.warning("Disk %s is still in use; retrying deletion", self.disk_name)
            return False
        raise error


__all__ = ["DiskDeletePoller", "is_in_use_error"]
