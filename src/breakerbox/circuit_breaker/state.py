"""Circuit breaker state primitives."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

DEFAULT_THRESHOLD = 25
DEFAULT_TIMEOUT_MS = 6000
DEFAULT_RETRY = True


class CircuitState(StrEnum):
    """Persisted circuit breaker state values."""

    CLOSED = "closed"
    OPEN = "open"


@dataclass(frozen=True)
class BreakerState:
    """Persisted state and configuration of one named breaker.

    There is no stored ``HALF_OPEN`` value. Whether an ``OPEN`` breaker may be
    probed again is recomputed from ``last_failure_time`` on every query.

    Attributes:
        name: Breaker name and storage key.
        state: Persisted breaker state.
        failure_count: Consecutive failures since the last success or reset.
        threshold: Failure count at which the breaker opens.
        timeout_ms: Milliseconds after the last failure before a probe is
            allowed.
        will_retry_after_timeout: Whether an open breaker ever allows a probe.
        last_failure_time: Timestamp of the last recorded failure, if any.
    """

    name: str
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    threshold: int = DEFAULT_THRESHOLD
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    will_retry_after_timeout: bool = DEFAULT_RETRY
    last_failure_time: datetime | None = None
