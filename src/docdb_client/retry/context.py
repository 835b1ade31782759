"""
The narrow view of a client that the retry layer depends on.
"""

from typing import Protocol, TYPE_CHECKING

from .config import ConnectionPolicy

if TYPE_CHECKING:
    from ..routing.endpoint_manager import GlobalEndpointManager
    from ..routing.partition_keys import PartitionKeyDefinitionMap


class ClientContext(Protocol):
    """Anything exposing connection policy, endpoint manager and partition-key map."""

    @property
    def connection_policy(self) -> ConnectionPolicy: ...

    @property
    def endpoint_manager(self) -> "GlobalEndpointManager": ...

    @property
    def partition_key_definition_map(self) -> "PartitionKeyDefinitionMap": ...
