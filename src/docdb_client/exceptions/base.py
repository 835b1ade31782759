"""
Base exception classes for document service operations.

Each exception carries the primary status code and the optional sub-status
code reported by the service. That pair is what the retry layer uses to decide
whether an operation can be re-issued.
"""

from ..constants import StatusCode


class DocumentClientError(Exception):
    """Base exception for all document service errors."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        sub_status_code: int | None = None,
        retry_after: float | None = None,
        activity_id: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.sub_status_code = sub_status_code
        self.retry_after = retry_after
        self.activity_id = activity_id

    def __str__(self) -> str:
        parts = [self.message]
        if self.status_code is not None:
            status = f"status: {int(self.status_code)}"
            if self.sub_status_code is not None:
                status += f", substatus: {int(self.sub_status_code)}"
            parts.append(f"({status})")
        if self.activity_id:
            parts.append(f"[activity: {self.activity_id}]")
        return " ".join(parts)


class BadRequestError(DocumentClientError):
    """Raised on 400. Retryable only for a partition-key mismatch on create."""

    def __init__(self, message: str = "Bad request", **kwargs):
        kwargs.setdefault("status_code", StatusCode.BAD_REQUEST)
        super().__init__(message, **kwargs)


class UnauthorizedError(DocumentClientError):
    """Raised when authentication fails. Not retryable."""

    def __init__(self, message: str = "Unauthorized", **kwargs):
        kwargs.setdefault("status_code", StatusCode.UNAUTHORIZED)
        super().__init__(message, **kwargs)


class ForbiddenError(DocumentClientError):
    """Raised on 403. Retryable only when the region stopped accepting writes."""

    def __init__(self, message: str = "Forbidden", **kwargs):
        kwargs.setdefault("status_code", StatusCode.FORBIDDEN)
        super().__init__(message, **kwargs)


class NotFoundError(DocumentClientError):
    """Raised on 404. Retryable only when the read session is not available."""

    def __init__(self, message: str = "Resource not found", **kwargs):
        kwargs.setdefault("status_code", StatusCode.NOT_FOUND)
        super().__init__(message, **kwargs)


class ConflictError(DocumentClientError):
    """Raised when a resource with the same id already exists."""

    def __init__(self, message: str = "Conflict", **kwargs):
        kwargs.setdefault("status_code", StatusCode.CONFLICT)
        super().__init__(message, **kwargs)


class PreconditionFailedError(DocumentClientError):
    """Raised when an etag precondition does not hold."""

    def __init__(self, message: str = "Precondition failed", **kwargs):
        kwargs.setdefault("status_code", StatusCode.PRECONDITION_FAILED)
        super().__init__(message, **kwargs)


class RequestRateTooLargeError(DocumentClientError):
    """Raised when the request was throttled (429)."""

    def __init__(self, message: str = "Request rate is too large", **kwargs):
        kwargs.setdefault("status_code", StatusCode.TOO_MANY_REQUESTS)
        super().__init__(message, **kwargs)


class ServerError(DocumentClientError):
    """Raised when the server returns a 5xx error."""

    def __init__(self, message: str = "Server error", **kwargs):
        kwargs.setdefault("status_code", StatusCode.INTERNAL_SERVER_ERROR)
        super().__init__(message, **kwargs)


class ServiceUnavailableError(ServerError):
    """Raised on 503."""

    def __init__(self, message: str = "Service unavailable", **kwargs):
        kwargs.setdefault("status_code", StatusCode.SERVICE_UNAVAILABLE)
        super().__init__(message, **kwargs)


class TransportError(DocumentClientError):
    """Raised when no response was received (connection failure, timeout)."""

    def __init__(self, message: str = "Transport failure", **kwargs):
        super().__init__(message, **kwargs)


_ERRORS_BY_STATUS: dict[int, type[DocumentClientError]] = {
    StatusCode.BAD_REQUEST: BadRequestError,
    StatusCode.UNAUTHORIZED: UnauthorizedError,
    StatusCode.FORBIDDEN: ForbiddenError,
    StatusCode.NOT_FOUND: NotFoundError,
    StatusCode.CONFLICT: ConflictError,
    StatusCode.PRECONDITION_FAILED: PreconditionFailedError,
    StatusCode.TOO_MANY_REQUESTS: RequestRateTooLargeError,
    StatusCode.SERVICE_UNAVAILABLE: ServiceUnavailableError,
}


def error_from_status(status_code: int, message: str | None = None, **kwargs) -> DocumentClientError:
    """
    Build the domain exception matching an HTTP status code.

    Args:
        status_code: HTTP status code of the failed response
        message: Error message from the response body, if any
        **kwargs: sub_status_code, retry_after, activity_id

    Returns:
        A DocumentClientError subclass instance (not raised)
    """
    error_class = _ERRORS_BY_STATUS.get(status_code)
    if error_class is None:
        error_class = ServerError if status_code >= 500 else DocumentClientError
    if message is None:
        if error_class is DocumentClientError:
            message = f"Request failed with status {status_code}"
        else:
            return error_class(status_code=status_code, **kwargs)
    return error_class(message, status_code=status_code, **kwargs)
