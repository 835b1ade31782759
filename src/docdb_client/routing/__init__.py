"""
Process-wide routing caches: regional endpoints and partition-key definitions.
"""

from .endpoint_manager import GlobalEndpointManager, DatabaseAccount, Location
from .partition_keys import PartitionKeyDefinition, PartitionKeyDefinitionMap

__all__ = [
    "GlobalEndpointManager",
    "DatabaseAccount",
    "Location",
    "PartitionKeyDefinition",
    "PartitionKeyDefinitionMap",
]
