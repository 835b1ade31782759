"""
Partition-key definitions and their process-wide cache.
"""

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PartitionKeyDefinition:
    """The partition-key schema of a collection."""

    paths: tuple[str, ...]
    kind: str = "Hash"
    version: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "PartitionKeyDefinition":
        """Parse the 'partitionKey' object of a collection body."""
        return cls(
            paths=tuple(data.get("paths", [])),
            kind=data.get("kind", "Hash"),
            version=data.get("version"),
        )

    def extract(self, document: dict) -> list[Any]:
        """
        Extract the partition-key values of a document.

        Args:
            document: Document body

        Returns:
            One value per key path; a new empty object, the service's
            "undefined" value, where the path is absent
        """
        values = []
        for path in self.paths:
            value: Any = document
            for part in path.strip("/").split("/"):
                if isinstance(value, dict) and part in value:
                    value = value[part]
                else:
                    value = {}
                    break
            values.append(value)
        return values

    def header_value(self, document: dict) -> str:
        """Partition-key header value for a document."""
        return json.dumps(self.extract(document))


DefinitionLoader = Callable[[str], PartitionKeyDefinition | None]


def _normalize(resource_path: str) -> str:
    return resource_path.strip("/")


class PartitionKeyDefinitionMap:
    """
    Cache of collection link -> partition-key definition.

    Shared across concurrent calls; reads and updates are lock-guarded. The
    loader runs outside the lock so a slow collection read does not block
    lookups for other collections.
    """

    def __init__(self, loader: DefinitionLoader):
        """
        Initialize the map.

        Args:
            loader: Reads the current definition of a collection, or None for
                non-partitioned collections
        """
        self._loader = loader
        self._lock = threading.Lock()
        self._definitions: dict[str, PartitionKeyDefinition | None] = {}

    def __contains__(self, resource_path: str) -> bool:
        with self._lock:
            return _normalize(resource_path) in self._definitions

    def get(self, resource_path: str) -> PartitionKeyDefinition | None:
        """Cached definition, loaded on first use."""
        key = _normalize(resource_path)
        with self._lock:
            if key in self._definitions:
                return self._definitions[key]
        return self.refresh(key)

    def put(self, resource_path: str, definition: PartitionKeyDefinition | None) -> None:
        with self._lock:
            self._definitions[_normalize(resource_path)] = definition

    def refresh(self, resource_path: str) -> PartitionKeyDefinition | None:
        """Reload the definition from the service and replace the cached one."""
        key = _normalize(resource_path)
        definition = self._loader(key)
        with self._lock:
            self._definitions[key] = definition
        logger.info(f"Partition key definition for {key} refreshed: {definition}")
        return definition

    def invalidate(self, resource_path: str) -> None:
        with self._lock:
            self._definitions.pop(_normalize(resource_path), None)
