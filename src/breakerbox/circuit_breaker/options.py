"""Permissive merge of breaker options into persisted state.

Option values are validated strictly (``True`` is not an ``int``, ``"10"`` is
not an ``int``). Anything that fails validation is dropped and the current
value is kept; unknown keys are ignored.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from types import MappingProxyType
from typing import Annotated, Any

from pydantic import Field, TypeAdapter, ValidationError

from breakerbox.circuit_breaker.state import BreakerState

THRESHOLD_OPTION = "threshold"
TIMEOUT_OPTION = "timeout"
RETRY_OPTION = "retry"

_OPTION_FIELDS: Mapping[str, tuple[str, TypeAdapter[Any]]] = MappingProxyType(
    {
        THRESHOLD_OPTION: (
            "threshold",
            TypeAdapter(Annotated[int, Field(strict=True, ge=1)]),
        ),
        TIMEOUT_OPTION: (
            "timeout_ms",
            TypeAdapter(Annotated[int, Field(strict=True, ge=0)]),
        ),
        RETRY_OPTION: (
            "will_retry_after_timeout",
            TypeAdapter(Annotated[bool, Field(strict=True)]),
        ),
    }
)


def validated_option_changes(options: Mapping[str, object]) -> dict[str, object]:
    """Return ``BreakerState`` field updates for the valid recognized options."""
    changes: dict[str, object] = {}
    for key, value in options.items():
        entry = _OPTION_FIELDS.get(key)
        if entry is None:
            continue
        field_name, adapter = entry
        try:
            changes[field_name] = adapter.validate_python(value)
        except ValidationError:
            continue
    return changes


def merge_options(state: BreakerState, options: Mapping[str, object]) -> BreakerState:
    """Apply valid options to ``state`` and return the resulting state.

    Returns ``state`` itself when no option was accepted.
    """
    changes = validated_option_changes(options)
    if not changes:
        return state
    return replace(state, **changes)
