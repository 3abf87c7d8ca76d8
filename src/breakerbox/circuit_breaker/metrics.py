"""Observability hooks for circuit breakers."""

from typing import Protocol

from breakerbox.circuit_breaker.state import CircuitState


class BreakerListener(Protocol):
    """Listener protocol for circuit breaker events.

    Notes:
        ``on_state_change`` fires only for persisted transitions. A breaker that
        starts allowing a retry probe after its timeout is still ``OPEN`` in
        storage and emits nothing.
    """

    def on_state_change(self, name: str, old: CircuitState, new: CircuitState) -> None:
        """Handle persisted circuit state transitions."""

    def on_failure(self, name: str, failure_count: int) -> None:
        """Handle a recorded failure."""

    def on_success(self, name: str) -> None:
        """Handle a recorded success."""
