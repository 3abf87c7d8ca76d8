"""Persisted circuit breaker.

This package implements the circuit breaker pattern from *Release It!* as a
state toggle that callers consult and report to, rather than a call wrapper.

Key behavior notes:
  - Storage persists only ``CLOSED`` and ``OPEN``. Once ``timeout`` ms have
    passed since the last failure an ``OPEN`` breaker reports itself closed so
    the caller can probe; the reported outcome decides the real transition.
  - ``retry=False`` makes ``OPEN`` sticky until ``success``, ``close`` or
    ``reset``.
  - Invalid option values are ignored and the previous value is kept.
  - Storage failures surface as ``BreakerStorageError`` and leave the
    breaker's view of its state unchanged.
"""

from breakerbox.circuit_breaker.breaker import CircuitBreaker
from breakerbox.circuit_breaker.exceptions import (
    BreakerStorageError,
    CircuitBreakerError,
    CircuitOpenError,
)
from breakerbox.circuit_breaker.metrics import BreakerListener
from breakerbox.circuit_breaker.options import merge_options
from breakerbox.circuit_breaker.state import (
    DEFAULT_RETRY,
    DEFAULT_THRESHOLD,
    DEFAULT_TIMEOUT_MS,
    BreakerState,
    CircuitState,
)
from breakerbox.circuit_breaker.storage import (
    AbstractBreakerStorage,
    InMemoryBreakerStorage,
    JsonFileBreakerStorage,
)

__all__ = [
    "DEFAULT_RETRY",
    "DEFAULT_THRESHOLD",
    "DEFAULT_TIMEOUT_MS",
    "AbstractBreakerStorage",
    "BreakerListener",
    "BreakerState",
    "BreakerStorageError",
    "CircuitBreaker",
    "CircuitBreakerError",
    "CircuitOpenError",
    "CircuitState",
    "InMemoryBreakerStorage",
    "JsonFileBreakerStorage",
    "merge_options",
]
