"""
Request and response types shared by the client and the retry layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..constants import HttpHeader


class OperationType(str, Enum):
    """Operations the client can issue."""

    CREATE = "create"
    READ = "read"
    REPLACE = "replace"
    DELETE = "delete"
    QUERY = "query"

    @property
    def is_read_only(self) -> bool:
        return self in (OperationType.READ, OperationType.QUERY)

    @property
    def http_method(self) -> str:
        return _HTTP_METHODS[self]


_HTTP_METHODS = {
    OperationType.CREATE: "POST",
    OperationType.READ: "GET",
    OperationType.REPLACE: "PUT",
    OperationType.DELETE: "DELETE",
    OperationType.QUERY: "POST",
}


class ResourceType(str, Enum):
    """Resource kinds addressed by a request."""

    COLLECTION = "colls"
    DOCUMENT = "docs"


@dataclass
class DocumentServiceRequest:
    """
    A single logical service call.

    One instance lives for the whole retry loop of a call and is mutated in
    place. Retry policies may only touch ``endpoint_override``; everything
    else belongs to the caller.
    """

    operation_type: OperationType
    resource_type: ResourceType
    resource_path: str
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)
    endpoint_override: str | None = None

    @property
    def is_read_only(self) -> bool:
        return self.operation_type.is_read_only

    @property
    def collection_link(self) -> str | None:
        """The 'dbs/<db>/colls/<coll>' prefix of the resource path, if any."""
        parts = self.resource_path.strip("/").split("/")
        if len(parts) >= 4 and parts[0] == "dbs" and parts[2] == "colls":
            return "/".join(parts[:4])
        return None


@dataclass
class DocumentServiceResponse:
    """Result of one successful attempt."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None

    @property
    def session_token(self) -> str | None:
        return self.headers.get(HttpHeader.SESSION_TOKEN)

    @property
    def activity_id(self) -> str | None:
        return self.headers.get(HttpHeader.ACTIVITY_ID)
