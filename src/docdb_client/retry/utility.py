"""
Retry orchestrators.

Both entry points invoke a delegate and, when it fails with a classified
error, consult the matching policy, wait the delay it asks for and invoke the
delegate again. When no policy matches, or the matching policy is exhausted,
the original error is re-raised unchanged.

The generic orchestrator re-issues any service request. The create
orchestrator re-issues a document create after a partition-key mismatch,
which needs the collection path the generic path does not have.
"""

import asyncio
import logging
import threading
import time
from typing import Awaitable, Callable, TypeVar, TYPE_CHECKING

from .classification import (
    CREATE_TABLE,
    GENERIC_TABLE,
    ClassificationTable,
    PolicyKind,
    classify,
)
from .context import ClientContext
from .policies import (
    EndpointDiscoveryRetryPolicy,
    PartitionKeyMismatchRetryPolicy,
    ResourceThrottleRetryPolicy,
    RetryPolicy,
    SessionReadRetryPolicy,
)
from ..exceptions import DocumentClientError

if TYPE_CHECKING:
    from ..clients.request import DocumentServiceRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _generic_policies(
    client_context: ClientContext, request: "DocumentServiceRequest"
) -> dict[PolicyKind, RetryPolicy]:
    retry_options = client_context.connection_policy.retry_options
    return {
        PolicyKind.ENDPOINT_DISCOVERY: EndpointDiscoveryRetryPolicy(client_context),
        PolicyKind.THROTTLE: ResourceThrottleRetryPolicy(
            retry_options.max_retry_attempts_on_throttled_requests,
            retry_options.max_retry_wait_time_in_seconds,
            retry_options,
        ),
        PolicyKind.SESSION_READ: SessionReadRetryPolicy(client_context.endpoint_manager, request),
    }


def _create_policies(client_context: ClientContext, resource_path: str) -> dict[PolicyKind, RetryPolicy]:
    return {
        PolicyKind.PARTITION_KEY_MISMATCH: PartitionKeyMismatchRetryPolicy(
            resource_path, client_context.partition_key_definition_map
        ),
    }


def _retry_policy_for(
    error: DocumentClientError,
    policies: dict[PolicyKind, RetryPolicy],
    table: ClassificationTable,
) -> RetryPolicy | None:
    """Return the policy that agreed to retry, or None if the error is terminal."""
    kind = classify(error, table)
    if kind is None:
        return None

    policy = policies[kind]
    try:
        retry = policy.should_retry(error)
    except Exception as policy_error:
        # A failed refresh must not replace the error being classified.
        logger.warning(f"Retry policy {kind.value} failed, giving up on {error}: {policy_error!r}")
        return None
    if not retry:
        logger.debug(f"Retry policy {kind.value} exhausted after {policy.attempt_count} attempts")
        return None

    logger.warning(
        f"Retry {policy.attempt_count} ({kind.value}): {error}, "
        f"waiting {policy.retry_after():.1f}s"
    )
    return policy


def _delay_for_retry(policy: RetryPolicy, wake: threading.Event | None) -> None:
    delay = policy.retry_after()
    if delay <= 0:
        return
    if wake is None:
        time.sleep(delay)
    elif wake.wait(delay):
        # Woken early: retry now.
        wake.clear()
        logger.debug("Retry delay interrupted, retrying immediately")


def _run(
    attempt: Callable[[], T],
    policies: dict[PolicyKind, RetryPolicy],
    table: ClassificationTable,
    wake: threading.Event | None,
) -> T:
    while True:
        try:
            return attempt()
        except DocumentClientError as e:
            policy = _retry_policy_for(e, policies, table)
            if policy is None:
                raise
            _delay_for_retry(policy, wake)


def execute(
    delegate: Callable[["DocumentServiceRequest"], T],
    client_context: ClientContext,
    request: "DocumentServiceRequest",
    wake: threading.Event | None = None,
) -> T:
    """
    Execute a service request, retrying classified failures.

    The same request object is passed to every attempt; the session-read
    policy may point it at another endpoint between attempts.

    Args:
        delegate: Performs one attempt of the request
        client_context: Supplies retry options, endpoint manager and caches
        request: The request to (re-)issue
        wake: Optional event; setting it cuts a pending retry delay short

    Returns:
        The delegate's result from the first successful attempt

    Raises:
        DocumentClientError: The original error when it is not retryable or
            its policy is exhausted
    """
    policies = _generic_policies(client_context, request)
    return _run(lambda: delegate(request), policies, GENERIC_TABLE, wake)


def execute_create(
    delegate: Callable[[], T],
    client_context: ClientContext,
    resource_path: str,
    wake: threading.Event | None = None,
) -> T:
    """
    Execute a document create, retrying once on a partition-key mismatch.

    Args:
        delegate: Performs one create attempt; re-reads the partition-key
            definition on every call
        client_context: Supplies the partition-key definition map
        resource_path: Link of the collection the document is created in
        wake: Optional event; setting it cuts a pending retry delay short

    Returns:
        The delegate's result from the first successful attempt

    Raises:
        DocumentClientError: The original error when it is not retryable or
            the mismatch persists after the refresh
    """
    policies = _create_policies(client_context, resource_path)
    return _run(delegate, policies, CREATE_TABLE, wake)


async def _async_run(
    attempt: Callable[[], Awaitable[T]],
    policies: dict[PolicyKind, RetryPolicy],
    table: ClassificationTable,
) -> T:
    while True:
        try:
            return await attempt()
        except DocumentClientError as e:
            # Policies may refresh caches over blocking HTTP.
            policy = await asyncio.to_thread(_retry_policy_for, e, policies, table)
            if policy is None:
                raise
            delay = policy.retry_after()
            if delay > 0:
                await asyncio.sleep(delay)


async def async_execute(
    delegate: Callable[["DocumentServiceRequest"], Awaitable[T]],
    client_context: ClientContext,
    request: "DocumentServiceRequest",
) -> T:
    """
    Async variant of ``execute``.

    Retry delays suspend the task instead of blocking; cancelling the task
    during a delay aborts the whole call.
    """
    policies = _generic_policies(client_context, request)
    return await _async_run(lambda: delegate(request), policies, GENERIC_TABLE)


async def async_execute_create(
    delegate: Callable[[], Awaitable[T]],
    client_context: ClientContext,
    resource_path: str,
) -> T:
    """Async variant of ``execute_create``."""
    policies = _create_policies(client_context, resource_path)
    return await _async_run(delegate, policies, CREATE_TABLE)
