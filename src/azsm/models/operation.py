from __future__ import annotations

from enum import Enum

from defusedxml import ElementTree
from defusedxml.common import DefusedXmlException
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import OperationDecodeError


class OperationState(str, Enum):
    IN_PROGRESS = "InProgress"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


class OperationStatus(BaseModel):
    """Status document of an asynchronous management operation.

    Only a ``Failed`` operation is expected to carry an error code and message,
    but both are optional and default to empty strings.
    """

    id: str = Field(default="", alias="ID")
    status: str = Field(default="", alias="Status")
    http_status_code: int = Field(default=0, alias="HttpStatusCode")
    error_code: str = Field(default="", alias="ErrorCode")
    error_message: str = Field(default="", alias="ErrorMessage")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @classmethod
    def from_xml(cls, body: bytes | str | None) -> OperationStatus:
        """Decode an ``<Operation>`` document, ignoring XML namespaces."""

        try:
            root = ElementTree.fromstring(body or b"")
        except (ElementTree.ParseError, DefusedXmlException) as exc:
            raise OperationDecodeError(f"cannot decode operation status: {exc}") from exc

        fields: dict[str, str] = {}
        for child in root:
            name = _local_name(child.tag)
            if name == "Error":
                for detail in child:
                    fields["Error" + _local_name(detail.tag)] = (detail.text or "").strip()
            else:
                fields[name] = (child.text or "").strip()
        if not fields.get("HttpStatusCode"):
            fields.pop("HttpStatusCode", None)

        try:
            return cls.model_validate(
                {key: value for key, value in fields.items() if key in _ALIASES}
            )
        except ValidationError as exc:
            raise OperationDecodeError(f"cannot decode operation status: {exc}") from exc

    @property
    def in_progress(self) -> bool:
        return self.status == OperationState.IN_PROGRESS.value

    @property
    def succeeded(self) -> bool:
        return self.status == OperationState.SUCCEEDED.value

    @property
    def failed(self) -> bool:
        return self.status == OperationState.FAILED.value

    @property
    def is_terminal(self) -> bool:
        return self.status != "" and not self.in_progress


_ALIASES = frozenset({"ID", "Status", "HttpStatusCode", "ErrorCode", "ErrorMessage"})


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]
