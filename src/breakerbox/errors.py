"""Shared error types for breakerbox."""


class BreakerboxError(RuntimeError):
    """Root of every error raised by breakerbox."""
