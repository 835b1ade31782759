"""
Global endpoint manager.

Tracks which regional endpoint currently accepts writes and the ordered list of
endpoints to read from, as advertised by the database account. The manager is
shared by every call made through a client, so its state is guarded by a lock.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, TYPE_CHECKING

from ..exceptions import DocumentClientError
from ..retry.config import ConnectionPolicy

if TYPE_CHECKING:
    from ..clients.request import DocumentServiceRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Location:
    """A named region and its endpoint."""

    name: str
    endpoint: str

    @classmethod
    def from_dict(cls, data: dict) -> "Location":
        return cls(name=data["name"], endpoint=data["databaseAccountEndpoint"].rstrip("/"))


@dataclass
class DatabaseAccount:
    """Topology advertised by the service for an account."""

    writable_locations: list[Location] = field(default_factory=list)
    readable_locations: list[Location] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "DatabaseAccount":
        """Parse the body of a database account read."""
        return cls(
            writable_locations=[Location.from_dict(loc) for loc in data.get("writableLocations", [])],
            readable_locations=[Location.from_dict(loc) for loc in data.get("readableLocations", [])],
        )


AccountReader = Callable[[str], DatabaseAccount]


class GlobalEndpointManager:
    """
    Resolves service endpoints for requests.

    With endpoint discovery disabled every request goes to the default
    endpoint and refreshes are no-ops. Otherwise the topology is read lazily
    on first use and again on every ``refresh_endpoint_list`` call.
    """

    def __init__(
        self,
        default_endpoint: str,
        connection_policy: ConnectionPolicy,
        account_reader: AccountReader,
    ):
        """
        Initialize the endpoint manager.

        Args:
            default_endpoint: Account endpoint used before and without discovery
            connection_policy: Supplies discovery flag and preferred locations
            account_reader: Callable that reads the account topology from an endpoint
        """
        self.default_endpoint = default_endpoint.rstrip("/")
        self.connection_policy = connection_policy
        self._account_reader = account_reader
        self._lock = threading.Lock()
        self._write_endpoint = self.default_endpoint
        self._read_endpoints = [self.default_endpoint]
        self._initialized = not connection_policy.enable_endpoint_discovery

    @property
    def enable_endpoint_discovery(self) -> bool:
        return self.connection_policy.enable_endpoint_discovery

    @property
    def write_endpoint(self) -> str:
        self._ensure_initialized()
        with self._lock:
            return self._write_endpoint

    @property
    def read_endpoints(self) -> list[str]:
        """Read endpoints in preference order (a copy)."""
        self._ensure_initialized()
        with self._lock:
            return list(self._read_endpoints)

    def refresh_endpoint_list(self) -> None:
        """
        Re-read the account topology and update the cached endpoints.

        Raises:
            DocumentClientError: If the account read fails
        """
        if not self.enable_endpoint_discovery:
            return

        account = self._account_reader(self.default_endpoint)
        write_endpoint, read_endpoints = self._compute_endpoints(account)

        with self._lock:
            self._write_endpoint = write_endpoint
            self._read_endpoints = read_endpoints
            self._initialized = True

        logger.info(
            f"Endpoint list refreshed: write={write_endpoint}, reads={read_endpoints}"
        )

    def resolve_service_endpoint(self, request: "DocumentServiceRequest") -> str:
        """Pick the endpoint a request should be sent to."""
        if request.endpoint_override:
            return request.endpoint_override
        if request.is_read_only:
            return self.read_endpoints[0]
        return self.write_endpoint

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        try:
            self.refresh_endpoint_list()
        except DocumentClientError as e:
            logger.warning(f"Endpoint discovery failed, using default endpoint: {e}")
            with self._lock:
                self._initialized = True

    def _compute_endpoints(self, account: DatabaseAccount) -> tuple[str, list[str]]:
        if account.writable_locations:
            write_endpoint = account.writable_locations[0].endpoint
        else:
            write_endpoint = self.default_endpoint

        by_name = {loc.name: loc.endpoint for loc in account.readable_locations}
        read_endpoints = [
            by_name[name]
            for name in self.connection_policy.preferred_locations
            if name in by_name
        ]
        if not read_endpoints:
            read_endpoints.append(write_endpoint)

        # Remaining regions stay available as fallbacks for session reads.
        for loc in account.readable_locations:
            if loc.endpoint not in read_endpoints:
                read_endpoints.append(loc.endpoint)

        return write_endpoint, read_endpoints
