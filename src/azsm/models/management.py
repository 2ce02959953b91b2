from __future__ import annotations

from xml.etree.ElementTree import Element, SubElement, tostring

from pydantic import BaseModel, ConfigDict

XMLNS = "http://schemas.microsoft.com/windowsazure"
XMLNS_I = "http://www.w3.org/2001/XMLSchema-instance"

START_ROLE_OPERATION = "StartRoleOperation"
SHUTDOWN_ROLE_OPERATION = "ShutdownRoleOperation"
RESTART_ROLE_OPERATION = "RestartRoleOperation"


class DeleteDiskRequest(BaseModel):
    """Delete an OS or data disk, optionally with its backing blob."""

    disk_name: str
    delete_blob: bool = False

    model_config = ConfigDict(frozen=True)


class RoleRequest(BaseModel):
    """Identifies a role (virtual machine) inside a hosted service deployment."""

    service_name: str
    deployment_name: str
    role_name: str

    model_config = ConfigDict(frozen=True)


def role_operation_xml(operation_type: str) -> bytes:
    """Serialize the body of a start/shutdown/restart role request."""

    root = Element(operation_type, {"xmlns": XMLNS, "xmlns:i": XMLNS_I})
    SubElement(root, "OperationType").text = operation_type
    return tostring(root, encoding="utf-8", xml_declaration=False)
