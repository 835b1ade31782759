"""
Document service client and the request/response types it exchanges.
"""

from .request import (
    DocumentServiceRequest,
    DocumentServiceResponse,
    OperationType,
    ResourceType,
)
from .document_client import DocumentClient

__all__ = [
    "DocumentClient",
    "DocumentServiceRequest",
    "DocumentServiceResponse",
    "OperationType",
    "ResourceType",
]
