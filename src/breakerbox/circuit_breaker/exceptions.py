"""Circuit breaker exceptions.

Callers can distinguish between:
  - The storage backend failing to load or save breaker state.
  - A caller asking to be rejected while the circuit is open.
"""

from breakerbox.errors import BreakerboxError


class CircuitBreakerError(BreakerboxError):
    """Base exception for the circuit breaker package."""


class BreakerStorageError(CircuitBreakerError):
    """Raised when a storage backend cannot load or save breaker state.

    Attributes:
        breaker_name: Name of the breaker whose state was being accessed.
        operation: Storage operation that failed (``load``, ``save``, ...).
    """

    def __init__(self, breaker_name: str, operation: str, reason: str = "") -> None:
        """Initialize a storage failure payload.

        Args:
            breaker_name: Breaker whose state could not be accessed.
            operation: Storage operation that failed.
            reason: Optional backend-specific detail.
        """
        self.breaker_name = breaker_name
        self.operation = operation
        message = f"storage_failed: {breaker_name} operation={operation}"
        if reason:
            message = f"{message} reason={reason}"
        super().__init__(message)


class CircuitOpenError(CircuitBreakerError):
    """Raised when a caller is rejected because the circuit is open.

    Attributes:
        breaker_name: Name of the breaker rejecting the call.
        retry_after: Seconds until a retry probe may be attempted, or ``None``
            when the breaker will not retry on its own.
    """

    def __init__(self, breaker_name: str, retry_after: float | None) -> None:
        """Initialize a circuit-open exception payload.

        Args:
            breaker_name: Breaker rejecting the call.
            retry_after: Seconds until the next probe window opens.
        """
        self.breaker_name = breaker_name
        self.retry_after = retry_after
        if retry_after is None:
            super().__init__(f"circuit_open: {breaker_name} retry_after=never")
        else:
            super().__init__(
                f"circuit_open: {breaker_name} retry_after={retry_after:g}s"
            )
