from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from breakerbox.circuit_breaker import (
    BreakerState,
    CircuitState,
    InMemoryBreakerStorage,
)


class FakeLogger:
    """Capture structured logger events for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, object]]] = []

    def _record(self, level: str, event: str, **kwargs: object) -> None:
        self.calls.append((level, event, kwargs))

    def info(self, event: str, **kwargs: object) -> None:
        self._record("info", event, **kwargs)

    def warning(self, event: str, **kwargs: object) -> None:
        self._record("warning", event, **kwargs)

    def error(self, event: str, **kwargs: object) -> None:
        self._record("error", event, **kwargs)

    def exception(self, event: str, **kwargs: object) -> None:
        self._record("exception", event, **kwargs)


class FakeClock:
    """Manually advanced replacement for the breaker's UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = datetime(2020, 1, 1, tzinfo=UTC) if start is None else start

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now = self._now + timedelta(seconds=seconds)


@dataclass(slots=True)
class RecordingListener:
    events: list[tuple[str, object]] = field(default_factory=list)

    def on_state_change(self, name: str, old: CircuitState, new: CircuitState) -> None:
        self.events.append(("state", (name, old, new)))

    def on_failure(self, name: str, failure_count: int) -> None:
        self.events.append(("failure", (name, failure_count)))

    def on_success(self, name: str) -> None:
        self.events.append(("success", name))


@dataclass(slots=True)
class ExplodingListener:
    def on_state_change(self, name: str, old: CircuitState, new: CircuitState) -> None:
        raise RuntimeError("boom")

    def on_failure(self, name: str, failure_count: int) -> None:
        raise RuntimeError("boom")

    def on_success(self, name: str) -> None:
        raise RuntimeError("boom")


class RecordingStorage(InMemoryBreakerStorage):
    """In-memory storage that records every save."""

    def __init__(self) -> None:
        super().__init__()
        self.saves: list[BreakerState] = []

    def save(self, name: str, state: BreakerState) -> None:
        self.saves.append(state)
        super().save(name, state)


class FlakyStorage(InMemoryBreakerStorage):
    """In-memory storage whose operations can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.load_error: Exception | None = None
        self.save_error: Exception | None = None

    def load(self, name: str) -> BreakerState | None:
        if self.load_error is not None:
            raise self.load_error
        return super().load(name)

    def save(self, name: str, state: BreakerState) -> None:
        if self.save_error is not None:
            raise self.save_error
        super().save(name, state)
