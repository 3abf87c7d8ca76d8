from __future__ import annotations

import pytest

from tests.breakerbox.support.fakes import FakeClock, FakeLogger


@pytest.fixture
def fake_logger() -> FakeLogger:
    """Provide a fresh structured logger test double per test."""
    return FakeLogger()


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Freeze the breaker clock at a fixed instant that tests advance by hand."""
    fake = FakeClock()
    monkeypatch.setattr("breakerbox.circuit_breaker.breaker._utcnow", fake.now)
    return fake
