"""Re-export typed models for the azsm SDK."""

from __future__ import annotations

from .management import (
    RESTART_ROLE_OPERATION,
    SHUTDOWN_ROLE_OPERATION,
    START_ROLE_OPERATION,
    DeleteDiskRequest,
    RoleRequest,
    role_operation_xml,
)
from .operation import OperationState, OperationStatus

__all__ = [
    "DeleteDiskRequest",
    "OperationState",
    "OperationStatus",
    "RESTART_ROLE_OPERATION",
    "RoleRequest",
    "SHUTDOWN_ROLE_OPERATION",
    "START_ROLE_OPERATION",
    "role_operation_xml",
]
