from __future__ import annotations

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from breakerbox.circuit_breaker.options import (
    RETRY_OPTION,
    THRESHOLD_OPTION,
    TIMEOUT_OPTION,
)
from breakerbox.circuit_breaker.state import (
    DEFAULT_RETRY,
    DEFAULT_THRESHOLD,
    DEFAULT_TIMEOUT_MS,
)


def prefixed_settings_config(prefix: str) -> SettingsConfigDict:
    """Build standard Pydantic settings config for prefixed environments."""
    return SettingsConfigDict(env_prefix=prefix, case_sensitive=False)


class BreakerSettings(BaseSettings):
    """Process-wide breaker defaults read from ``BREAKER_*`` variables."""

    model_config = prefixed_settings_config("BREAKER_")

    threshold: int = DEFAULT_THRESHOLD
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    retry: bool = DEFAULT_RETRY

    @model_validator(mode="after")
    def _validate_breaker_settings(self) -> BreakerSettings:
        if self.threshold < 1:
            raise ValueError("threshold must be >= 1")
        if self.timeout_ms < 0:
            raise ValueError("timeout_ms must be >= 0")
        return self

    def breaker_options(self) -> dict[str, object]:
        """Build the option mapping accepted by ``CircuitBreaker.build``."""
        return {
            THRESHOLD_OPTION: self.threshold,
            TIMEOUT_OPTION: self.timeout_ms,
            RETRY_OPTION: self.retry,
        }
