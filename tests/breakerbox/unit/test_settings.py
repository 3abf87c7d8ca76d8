from __future__ import annotations

import pytest
from pydantic import ValidationError

from breakerbox.circuit_breaker import CircuitBreaker, InMemoryBreakerStorage
from breakerbox.settings import BreakerSettings

_ENV_NAMES = (
    "BREAKER_THRESHOLD",
    "BREAKER_TIMEOUT_MS",
    "BREAKER_RETRY",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for env_name in _ENV_NAMES:
        monkeypatch.delenv(env_name, raising=False)


def test_breaker_settings_defaults() -> None:
    settings = BreakerSettings()

    assert settings.breaker_options() == {
        "threshold": 25,
        "timeout": 6000,
        "retry": True,
    }


def test_breaker_settings_reads_prefixed_environment(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("BREAKER_THRESHOLD", "3")
    monkeypatch.setenv("BREAKER_TIMEOUT_MS", "0")
    monkeypatch.setenv("BREAKER_RETRY", "false")

    settings = BreakerSettings()

    assert settings.breaker_options() == {
        "threshold": 3,
        "timeout": 0,
        "retry": False,
    }


def test_breaker_settings_options_build_breaker(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("BREAKER_THRESHOLD", "1")
    monkeypatch.setenv("BREAKER_RETRY", "false")

    breaker = CircuitBreaker.build(
        "svc", InMemoryBreakerStorage(), BreakerSettings().breaker_options()
    )
    breaker.failure()

    assert breaker.is_open() is True
    assert breaker.will_retry_after_timeout is False


@pytest.mark.parametrize(
    ("env_name", "value"),
    [
        ("BREAKER_THRESHOLD", "0"),
        ("BREAKER_THRESHOLD", "many"),
        ("BREAKER_TIMEOUT_MS", "-1"),
        ("BREAKER_RETRY", "sometimes"),
    ],
)
def test_breaker_settings_rejects_invalid_environment(
    monkeypatch: pytest.MonkeyPatch, env_name: str, value: str
) -> None:
    monkeypatch.setenv(env_name, value)

    with pytest.raises(ValidationError):
        BreakerSettings()
