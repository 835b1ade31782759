"""
docdb-client - retrying client for a partitioned, multi-region document service.

Failed operations are classified by status and sub-status code and re-issued
under per-call retry policies until they succeed or the policy gives up.
"""

from .constants import StatusCode, SubStatusCode
from .exceptions import (
    DocumentClientError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    PreconditionFailedError,
    RequestRateTooLargeError,
    ServerError,
    ServiceUnavailableError,
    TransportError,
)
from .retry import (
    RetryOptions,
    BackoffStrategy,
    ConnectionPolicy,
    RetryPolicy,
    execute,
    execute_create,
    async_execute,
    async_execute_create,
)
from .routing import GlobalEndpointManager, PartitionKeyDefinition, PartitionKeyDefinitionMap
from .clients import (
    DocumentClient,
    DocumentServiceRequest,
    DocumentServiceResponse,
    OperationType,
    ResourceType,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Codes
    "StatusCode",
    "SubStatusCode",
    # Client
    "DocumentClient",
    "DocumentServiceRequest",
    "DocumentServiceResponse",
    "OperationType",
    "ResourceType",
    # Exceptions
    "DocumentClientError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "PreconditionFailedError",
    "RequestRateTooLargeError",
    "ServerError",
    "ServiceUnavailableError",
    "TransportError",
    # Retry
    "RetryOptions",
    "BackoffStrategy",
    "ConnectionPolicy",
    "RetryPolicy",
    "execute",
    "execute_create",
    "async_execute",
    "async_execute_create",
    # Routing
    "GlobalEndpointManager",
    "PartitionKeyDefinition",
    "PartitionKeyDefinitionMap",
]
