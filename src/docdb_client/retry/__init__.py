"""
Retry orchestration.

Classifies failed attempts, consults per-call retry policies and re-issues
the operation until it succeeds or the matching policy gives up.
"""

from .config import RetryOptions, BackoffStrategy, ConnectionPolicy
from .classification import PolicyKind, classify
from .context import ClientContext
from .policies import (
    RetryPolicy,
    EndpointDiscoveryRetryPolicy,
    ResourceThrottleRetryPolicy,
    SessionReadRetryPolicy,
    PartitionKeyMismatchRetryPolicy,
)
from .utility import execute, execute_create, async_execute, async_execute_create

__all__ = [
    "RetryOptions",
    "BackoffStrategy",
    "ConnectionPolicy",
    "PolicyKind",
    "classify",
    "ClientContext",
    "RetryPolicy",
    "EndpointDiscoveryRetryPolicy",
    "ResourceThrottleRetryPolicy",
    "SessionReadRetryPolicy",
    "PartitionKeyMismatchRetryPolicy",
    "execute",
    "execute_create",
    "async_execute",
    "async_execute_create",
]
