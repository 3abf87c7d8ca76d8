"""Core circuit breaker implementation."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from breakerbox.circuit_breaker.exceptions import (
    BreakerStorageError,
    CircuitOpenError,
)
from breakerbox.circuit_breaker.metrics import BreakerListener
from breakerbox.circuit_breaker.options import (
    RETRY_OPTION,
    THRESHOLD_OPTION,
    TIMEOUT_OPTION,
    merge_options,
)
from breakerbox.circuit_breaker.state import BreakerState, CircuitState
from breakerbox.circuit_breaker.storage import AbstractBreakerStorage
from breakerbox.logging import (
    BreakerLogger,
    get_logger,
    log_error,
    log_exception,
    log_info,
    log_warning,
)


_ONE_MS = timedelta(milliseconds=1)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CircuitBreaker:
    """Named, persisted failure counter that tells callers when to back off.

    Callers ask ``is_open()``/``is_closed()`` before attempting an operation and
    report the outcome with ``success()`` or ``failure()``. Every state change
    is a load-modify-save against the storage backend, serialized per name by
    ``AbstractBreakerStorage.locked``.

    An ``OPEN`` breaker whose timeout has elapsed since the last failure reports
    itself closed so a single retry probe can go through. Storage still holds
    ``OPEN`` until the probe outcome is reported.
    """

    def __init__(
        self,
        name: str,
        storage: AbstractBreakerStorage,
        *,
        listeners: Sequence[BreakerListener] | None = None,
        logger: BreakerLogger | None = None,
    ) -> None:
        """Create an unloaded breaker. Use ``build`` to obtain a usable one.

        Args:
            name: Unique breaker name used as storage key.
            storage: State storage backend.
            listeners: Optional listener hooks for breaker events.
            logger: Structured logger. Defaults to this module's structlog
                logger.
        """
        self._state = BreakerState(name=name)
        self._storage = storage
        self._listeners = tuple(listeners) if listeners is not None else ()
        self._logger = get_logger(__name__) if logger is None else logger

    @classmethod
    def build(
        cls,
        name: str,
        storage: AbstractBreakerStorage,
        options: Mapping[str, object] | None = None,
        *,
        listeners: Sequence[BreakerListener] | None = None,
        logger: BreakerLogger | None = None,
    ) -> CircuitBreaker:
        """Load the breaker ``name`` from storage, creating it if absent.

        Args:
            name: Unique breaker name used as storage key.
            storage: State storage backend.
            options: ``threshold``, ``timeout`` (ms) and ``retry`` overrides.
                Only applied when the breaker is created; invalid values are
                ignored.
            listeners: Optional listener hooks for breaker events.
            logger: Structured logger.

        Returns:
            A breaker whose state is persisted in ``storage``.

        Raises:
            BreakerStorageError: When the backend cannot load or save.
        """
        breaker = cls(name, storage, listeners=listeners, logger=logger)
        with storage.locked(name):
            existing = breaker._load()
            if existing is not None:
                breaker._state = existing
                return breaker

            created = merge_options(BreakerState(name=name), options or {})
            breaker._save(created)
            breaker._state = created
        return breaker

    @property
    def name(self) -> str:
        return self._state.name

    @property
    def state(self) -> CircuitState:
        """Persisted state, without the retry-probe reinterpretation."""
        return self._state.state

    @property
    def failure_count(self) -> int:
        return self._state.failure_count

    @property
    def last_failure_time(self) -> datetime | None:
        return self._state.last_failure_time

    @property
    def snapshot(self) -> BreakerState:
        """The breaker's view of its last persisted state."""
        return self._state

    @property
    def threshold(self) -> int:
        return self._state.threshold

    @threshold.setter
    def threshold(self, value: object) -> None:
        self.configure({THRESHOLD_OPTION: value})

    @property
    def timeout(self) -> int:
        """Retry timeout in milliseconds."""
        return self._state.timeout_ms

    @timeout.setter
    def timeout(self, value: object) -> None:
        self.configure({TIMEOUT_OPTION: value})

    @property
    def will_retry_after_timeout(self) -> bool:
        return self._state.will_retry_after_timeout

    @will_retry_after_timeout.setter
    def will_retry_after_timeout(self, value: object) -> None:
        self.configure({RETRY_OPTION: value})

    def configure(self, options: Mapping[str, object]) -> None:
        """Apply option overrides to this breaker and persist them.

        Invalid values and unknown keys are ignored. Nothing is written when no
        option is accepted.
        """
        self._update(lambda current: merge_options(current, options))

    def failure(self) -> None:
        """Record a failed attempt, opening the breaker at the threshold."""

        def _record_failure(current: BreakerState) -> BreakerState:
            failure_count = current.failure_count + 1
            state = current.state
            if failure_count >= current.threshold:
                state = CircuitState.OPEN
            return replace(
                current,
                state=state,
                failure_count=failure_count,
                last_failure_time=_utcnow(),
            )

        updated = self._update(_record_failure)
        self._emit_failure(updated.failure_count)

    def success(self) -> None:
        """Record a successful attempt and close the breaker."""
        self._update(
            lambda current: replace(
                current, state=CircuitState.CLOSED, failure_count=0
            )
        )
        self._emit_success()

    def open(self) -> None:
        """Force the breaker open regardless of the failure count."""
        self._update(lambda current: replace(current, state=CircuitState.OPEN))

    def close(self) -> None:
        """Force the breaker closed and clear the failure count."""
        self._update(
            lambda current: replace(
                current, state=CircuitState.CLOSED, failure_count=0
            )
        )

    def reset(self) -> None:
        """Return the breaker to its freshly built condition."""
        self._update(
            lambda current: replace(
                current,
                state=CircuitState.CLOSED,
                failure_count=0,
                last_failure_time=None,
            )
        )
        log_info(self._logger, "circuit_breaker.reset", breaker=self.name)

    def refresh(self) -> None:
        """Reload state written to storage by other breaker instances."""
        with self._storage.locked(self.name):
            stored = self._load()
        if stored is not None:
            self._state = stored

    def is_open(self) -> bool:
        """Return whether callers should skip the protected operation."""
        snapshot = self._state
        return snapshot.state == CircuitState.OPEN and not self._retry_allowed(
            snapshot, _utcnow()
        )

    def is_closed(self) -> bool:
        """Return whether callers may attempt the protected operation."""
        return not self.is_open()

    def retry_after(self) -> float | None:
        """Return seconds until a retry probe is allowed.

        ``0.0`` when the operation may be attempted now. ``None`` when the
        breaker is open and will not allow a probe on its own.
        """
        snapshot = self._state
        if snapshot.state == CircuitState.CLOSED:
            return 0.0
        if not snapshot.will_retry_after_timeout or snapshot.last_failure_time is None:
            return None
        elapsed = (_utcnow() - snapshot.last_failure_time).total_seconds()
        return max(snapshot.timeout_ms / 1000 - elapsed, 0.0)

    def raise_if_open(self) -> None:
        """Raise ``CircuitOpenError`` when callers should back off."""
        if self.is_open():
            raise CircuitOpenError(self.name, retry_after=self.retry_after())

    @staticmethod
    def _retry_allowed(snapshot: BreakerState, now: datetime) -> bool:
        if snapshot.state != CircuitState.OPEN:
            return False
        if not snapshot.will_retry_after_timeout:
            return False
        if snapshot.last_failure_time is None:
            return False
        elapsed_ms = (now - snapshot.last_failure_time) // _ONE_MS
        return elapsed_ms >= snapshot.timeout_ms

    def _update(self, change: Callable[[BreakerState], BreakerState]) -> BreakerState:
        with self._storage.locked(self.name):
            current = self._load()
            if current is None:
                current = self._state
            updated = change(current)
            if updated is not current:
                self._save(updated)
            self._state = updated

        if updated.state != current.state:
            self._log_transition(updated)
            self._emit_state_change(current.state, updated.state)
        return updated

    def _load(self) -> BreakerState | None:
        with self._storage_call("load"):
            return self._storage.load(self.name)

    def _save(self, state: BreakerState) -> None:
        with self._storage_call("save"):
            self._storage.save(self.name, state)

    @contextmanager
    def _storage_call(self, operation: str) -> Iterator[None]:
        try:
            yield
        except BreakerStorageError as error:
            self._log_storage_failure(operation, error)
            raise
        except Exception as error:
            self._log_storage_failure(operation, error)
            raise BreakerStorageError(self.name, operation, str(error)) from error

    def _log_storage_failure(self, operation: str, error: Exception) -> None:
        log_error(
            self._logger,
            "circuit_breaker.storage_failed",
            breaker=self.name,
            operation=operation,
            error=str(error),
        )

    def _log_transition(self, updated: BreakerState) -> None:
        if updated.state == CircuitState.OPEN:
            log_warning(
                self._logger,
                "circuit_breaker.opened",
                breaker=self.name,
                failure_count=updated.failure_count,
                threshold=updated.threshold,
            )
            return
        log_info(self._logger, "circuit_breaker.closed", breaker=self.name)

    def _emit_state_change(self, old: CircuitState, new: CircuitState) -> None:
        for listener in self._listeners:
            try:
                listener.on_state_change(self.name, old, new)
            except Exception:
                self._log_listener_failure("on_state_change")

    def _emit_failure(self, failure_count: int) -> None:
        for listener in self._listeners:
            try:
                listener.on_failure(self.name, failure_count)
            except Exception:
                self._log_listener_failure("on_failure")

    def _emit_success(self) -> None:
        for listener in self._listeners:
            try:
                listener.on_success(self.name)
            except Exception:
                self._log_listener_failure("on_success")

    def _log_listener_failure(self, hook: str) -> None:
        log_exception(
            self._logger,
            "circuit_breaker.listener_failed",
            breaker=self.name,
            hook=hook,
        )
