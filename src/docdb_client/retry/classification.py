"""
Classification of failed attempts.

Each orchestrator owns a table mapping (status code, sub-status code) to the
kind of policy that handles it. Lookup is a total function: a pair absent from
the table maps to None, meaning the error is not retryable.
"""

from enum import Enum

from ..constants import StatusCode, SubStatusCode
from ..exceptions import DocumentClientError


class PolicyKind(str, Enum):
    """The failure classes a retry policy exists for."""

    ENDPOINT_DISCOVERY = "endpoint_discovery"
    THROTTLE = "throttle"
    SESSION_READ = "session_read"
    PARTITION_KEY_MISMATCH = "partition_key_mismatch"


# Matches any sub-status, including none.
ANY_SUB_STATUS = object()

ClassificationTable = list[tuple[int, object, PolicyKind]]

GENERIC_TABLE: ClassificationTable = [
    (StatusCode.FORBIDDEN, SubStatusCode.WRITE_FORBIDDEN, PolicyKind.ENDPOINT_DISCOVERY),
    (StatusCode.TOO_MANY_REQUESTS, ANY_SUB_STATUS, PolicyKind.THROTTLE),
    (StatusCode.NOT_FOUND, SubStatusCode.READ_SESSION_NOT_AVAILABLE, PolicyKind.SESSION_READ),
]

CREATE_TABLE: ClassificationTable = [
    (StatusCode.BAD_REQUEST, SubStatusCode.PARTITION_KEY_MISMATCH, PolicyKind.PARTITION_KEY_MISMATCH),
]


def classify(error: DocumentClientError, table: ClassificationTable = GENERIC_TABLE) -> PolicyKind | None:
    """
    Find the policy kind handling an error.

    Args:
        error: The failure raised by the delegate
        table: Classification table to consult (default: generic table)

    Returns:
        The matching PolicyKind, or None when the error is not retryable
    """
    for status_code, sub_status_code, kind in table:
        if error.status_code != status_code:
            continue
        if sub_status_code is ANY_SUB_STATUS:
            return kind
        if error.sub_status_code is not None and error.sub_status_code == sub_status_code:
            return kind
    return None
