"""
Retry policies.

A policy answers two questions for one class of failure: should the call be
retried, and after how long. Policies are stateful and scoped to a single
top-level call; the orchestrator creates fresh instances for every call and
drops them once it returns.
"""

import logging
import random
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .config import BackoffStrategy, RetryOptions
from ..exceptions import DocumentClientError

if TYPE_CHECKING:
    from .context import ClientContext
    from ..clients.request import DocumentServiceRequest
    from ..routing.endpoint_manager import GlobalEndpointManager
    from ..routing.partition_keys import PartitionKeyDefinitionMap

logger = logging.getLogger(__name__)


class RetryPolicy(ABC):
    """Interface shared by every retry policy."""

    attempt_count: int

    @abstractmethod
    def should_retry(self, error: DocumentClientError) -> bool:
        """
        Decide whether the failed attempt should be re-issued.

        May update the policy's state and, depending on the policy, shared
        caches or the request's routing.
        """
        ...

    @abstractmethod
    def retry_after(self) -> float:
        """Delay in seconds before the next attempt."""
        ...


class EndpointDiscoveryRetryPolicy(RetryPolicy):
    """
    Retries writes rejected by a region that no longer accepts them.

    Every retry refreshes the account topology so the next attempt is routed
    to the current write region.
    """

    MAX_RETRIES = 120
    RETRY_INTERVAL = 1.0

    def __init__(self, client_context: "ClientContext"):
        self.enable_endpoint_discovery = client_context.connection_policy.enable_endpoint_discovery
        self.endpoint_manager = client_context.endpoint_manager
        self.attempt_count = 0

    def should_retry(self, error: DocumentClientError) -> bool:
        if not self.enable_endpoint_discovery:
            return False
        if self.attempt_count >= self.MAX_RETRIES:
            return False

        self.attempt_count += 1
        try:
            self.endpoint_manager.refresh_endpoint_list()
        except DocumentClientError as e:
            logger.warning(f"Endpoint refresh failed, retrying with cached endpoints: {e}")
        return True

    def retry_after(self) -> float:
        return self.RETRY_INTERVAL


class ResourceThrottleRetryPolicy(RetryPolicy):
    """
    Retries throttled (429) requests within an attempt and wait-time budget.

    ``max_attempts`` counts throttled attempts including the first one, so a
    call never invokes its delegate more than ``max_attempts`` times because
    of throttling.
    """

    def __init__(
        self,
        max_attempts: int,
        max_wait_seconds: float,
        options: RetryOptions | None = None,
    ):
        """
        Initialize the throttle policy.

        Args:
            max_attempts: Maximum throttled attempts per call
            max_wait_seconds: Cap on the total time spent waiting
            options: Backoff settings used when the server suggests no delay
        """
        self.max_attempts = max_attempts
        self.max_wait_seconds = max_wait_seconds
        self.options = options or RetryOptions()
        self.attempt_count = 0
        self.cumulative_wait = 0.0
        self._retry_after = 0.0

    def should_retry(self, error: DocumentClientError) -> bool:
        self._retry_after = 0.0
        self.attempt_count += 1

        if self.attempt_count >= self.max_attempts:
            return False

        remaining = self.max_wait_seconds - self.cumulative_wait
        if remaining <= 0:
            return False

        delay = self._next_delay(error, remaining)
        self._retry_after = delay
        self.cumulative_wait += delay
        return True

    def retry_after(self) -> float:
        return self._retry_after

    def _next_delay(self, error: DocumentClientError, remaining: float) -> float:
        """
        Delay before re-issuing the throttled attempt.

        The server's retry-after hint is honored as given. Without one, the
        delay grows with the number of throttles seen so far in this call,
        stays under ``options.max_delay`` and is spread by ``options.jitter``.
        Either way it never exceeds what is left of the wait budget.
        """
        if error.retry_after is not None:
            return min(max(0.0, error.retry_after), remaining)

        options = self.options
        throttles = self.attempt_count
        if options.strategy == BackoffStrategy.EXPONENTIAL:
            delay = options.base_delay * 2 ** (throttles - 1)
        elif options.strategy == BackoffStrategy.LINEAR:
            delay = options.base_delay * throttles
        else:
            delay = options.base_delay
        delay = min(delay, options.max_delay)

        if options.jitter > 0:
            delay *= random.uniform(1 - options.jitter, 1 + options.jitter)

        return min(max(0.0, delay), remaining)


class SessionReadRetryPolicy(RetryPolicy):
    """
    Retries requests whose session token is not yet available at the replica.

    Walks the known endpoints once: each retry points the request at the next
    endpoint that has not been tried. Reads walk the read endpoints in
    preference order; writes can only go to the write endpoint.
    """

    def __init__(self, endpoint_manager: "GlobalEndpointManager", request: "DocumentServiceRequest"):
        self.endpoint_manager = endpoint_manager
        self.request = request
        self.attempt_count = 0
        self._candidates: list[str] | None = None
        self._tried: set[str] = set()

    def should_retry(self, error: DocumentClientError) -> bool:
        if self._candidates is None:
            if self.request.is_read_only:
                self._candidates = self.endpoint_manager.read_endpoints
            else:
                self._candidates = [self.endpoint_manager.write_endpoint]
            self._tried.add(self.endpoint_manager.resolve_service_endpoint(self.request))

        for endpoint in self._candidates:
            if endpoint not in self._tried:
                self._tried.add(endpoint)
                self.attempt_count += 1
                self.request.endpoint_override = endpoint
                logger.debug(f"Session read moved to {endpoint}")
                return True
        return False

    def retry_after(self) -> float:
        return 0.0


class PartitionKeyMismatchRetryPolicy(RetryPolicy):
    """
    Retries a document create once after refreshing the cached partition-key
    definition of the target collection.
    """

    MAX_RETRIES = 1

    def __init__(self, resource_path: str, definition_map: "PartitionKeyDefinitionMap"):
        self.resource_path = resource_path
        self.definition_map = definition_map
        self.attempt_count = 0

    def should_retry(self, error: DocumentClientError) -> bool:
        if self.attempt_count >= self.MAX_RETRIES:
            return False

        self.attempt_count += 1
        try:
            self.definition_map.refresh(self.resource_path)
        except DocumentClientError as e:
            logger.warning(f"Partition key refresh for {self.resource_path} failed: {e}")
            return False
        return True

    def retry_after(self) -> float:
        return 0.0
