"""
Exception hierarchy for document service operations.

Every error carries the (status_code, sub_status_code) pair that the retry
layer classifies on.
"""

from .base import (
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
    error_from_status,
)

__all__ = [
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
    "error_from_status",
]
