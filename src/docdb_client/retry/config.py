"""
Retry options and connection policy definitions.
"""

from dataclasses import dataclass, field
from enum import Enum


class BackoffStrategy(str, Enum):
    """Backoff used for throttled requests when the server suggests no delay."""

    EXPONENTIAL = "exponential"  # base, 2 * base, 4 * base, ...
    LINEAR = "linear"  # base, 2 * base, 3 * base, ...
    CONSTANT = "constant"  # base every time


@dataclass
class RetryOptions:
    """
    Retry budget for throttled (429) requests.

    Attributes:
        max_retry_attempts_on_throttled_requests: Maximum number of throttled
            attempts per call, the first one included (default: 9)
        max_retry_wait_time_in_seconds: Cumulative wait cap per call (default: 30)
        base_delay: Backoff base in seconds when no retry-after is returned
        max_delay: Cap for a single computed backoff delay in seconds
        strategy: Backoff strategy to use (default: exponential)
        jitter: Jitter factor as fraction of delay (default: 0.25 = ±25%)
    """

    max_retry_attempts_on_throttled_requests: int = 9
    max_retry_wait_time_in_seconds: float = 30.0
    base_delay: float = 1.0
    max_delay: float = 30.0
    strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    jitter: float = 0.25

    def __post_init__(self) -> None:
        if self.max_retry_attempts_on_throttled_requests < 0:
            raise ValueError("max_retry_attempts_on_throttled_requests must be >= 0")
        if self.max_retry_wait_time_in_seconds < 0:
            raise ValueError("max_retry_wait_time_in_seconds must be >= 0")

    @classmethod
    def aggressive(cls) -> "RetryOptions":
        """Preset for aggressive retry (more attempts, longer wait budget)."""
        return cls(
            max_retry_attempts_on_throttled_requests=20,
            max_retry_wait_time_in_seconds=120.0,
            base_delay=2.0,
            max_delay=60.0,
        )

    @classmethod
    def conservative(cls) -> "RetryOptions":
        """Preset for conservative retry (fewer attempts, shorter waits)."""
        return cls(
            max_retry_attempts_on_throttled_requests=3,
            max_retry_wait_time_in_seconds=10.0,
            base_delay=0.5,
            max_delay=5.0,
        )

    @classmethod
    def no_retry(cls) -> "RetryOptions":
        """Preset for no throttle retry (single attempt only)."""
        return cls(max_retry_attempts_on_throttled_requests=0)


@dataclass
class ConnectionPolicy:
    """
    Client-wide connection settings.

    Attributes:
        retry_options: Throttle retry budget
        enable_endpoint_discovery: Follow the account's write/read regions
        preferred_locations: Region names in read preference order
        request_timeout: HTTP request timeout in seconds
    """

    retry_options: RetryOptions = field(default_factory=RetryOptions)
    enable_endpoint_discovery: bool = True
    preferred_locations: list[str] = field(default_factory=list)
    request_timeout: float = 60.0
