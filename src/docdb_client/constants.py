"""
HTTP status, sub-status and header constants used by the document service.
"""

from enum import IntEnum


class StatusCode(IntEnum):
    """Primary HTTP status codes returned by the service."""

    OK = 200
    CREATED = 201
    NO_CONTENT = 204
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    PRECONDITION_FAILED = 412
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503


class SubStatusCode(IntEnum):
    """Sub-status codes carried in the x-ms-substatus header."""

    WRITE_FORBIDDEN = 3
    PARTITION_KEY_MISMATCH = 1001
    READ_SESSION_NOT_AVAILABLE = 1002


class HttpHeader:
    """Header names read or written by the client."""

    SUB_STATUS = "x-ms-substatus"
    RETRY_AFTER_MS = "x-ms-retry-after-ms"
    ACTIVITY_ID = "x-ms-activity-id"
    SESSION_TOKEN = "x-ms-session-token"
    PARTITION_KEY = "x-ms-documentdb-partitionkey"
    IS_QUERY = "x-ms-documentdb-isquery"
    CONTINUATION = "x-ms-continuation"
    VERSION = "x-ms-version"
    AUTHORIZATION = "authorization"


API_VERSION = "2018-12-31"
