"""State storage for circuit breakers.

Storage is decoupled from breaker logic. Custom backends (for
example a shared cache or a database table) implement ``load``/``save``/
``delete`` and inherit per-name locking from ``AbstractBreakerStorage``.

Important: storage persists only ``CLOSED`` and ``OPEN``. Probe eligibility is
recomputed from ``last_failure_time`` by the breaker and never stored.
"""

from __future__ import annotations

import os
import tempfile
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager, suppress
from pathlib import Path
from urllib.parse import quote

from pydantic import TypeAdapter, ValidationError

from breakerbox.circuit_breaker.exceptions import BreakerStorageError
from breakerbox.circuit_breaker.state import BreakerState

_STATE_ADAPTER = TypeAdapter(BreakerState)


class AbstractBreakerStorage(ABC):
    """Abstract breaker storage interface.

    Subclasses that override ``__init__`` must call ``super().__init__()``.
    """

    def __init__(self) -> None:
        """Initialize the per-name lock registry."""
        self._locks: dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    @contextmanager
    def locked(self, name: str) -> Iterator[None]:
        """Hold the process-local lock for breaker ``name``.

        Breakers wrap every load-modify-save sequence in this lock so two
        threads reporting on the same name cannot lose an update.
        """
        with self._locks_guard:
            lock = self._locks[name]
        with lock:
            yield

    @abstractmethod
    def load(self, name: str) -> BreakerState | None:
        """Return the stored state for ``name``, or ``None`` if absent."""

    @abstractmethod
    def save(self, name: str, state: BreakerState) -> None:
        """Persist ``state`` under ``name``."""

    @abstractmethod
    def delete(self, name: str) -> None:
        """Remove any stored state for ``name``."""


class InMemoryBreakerStorage(AbstractBreakerStorage):
    """Process-lifetime storage keyed by breaker name."""

    def __init__(self) -> None:
        """Initialize the in-memory state registry."""
        super().__init__()
        self._states: dict[str, BreakerState] = {}

    def load(self, name: str) -> BreakerState | None:
        return self._states.get(name)

    def save(self, name: str, state: BreakerState) -> None:
        self._states[name] = state

    def delete(self, name: str) -> None:
        self._states.pop(name, None)


class JsonFileBreakerStorage(AbstractBreakerStorage):
    """Storage writing one JSON document per breaker into a directory.

    Writes are atomic per file (temp file plus ``os.replace``), so several
    processes may share a directory. Concurrent writers in different processes
    are not serialized; only threads within one process share ``locked``.
    """

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        """Create storage rooted at ``directory``.

        Args:
            directory: Directory holding the state files. Created on first save.
        """
        super().__init__()
        self._directory = Path(directory)

    def path_for(self, name: str) -> Path:
        """Return the file path used for breaker ``name``."""
        return self._directory / f"{quote(name, safe='')}.json"

    def load(self, name: str) -> BreakerState | None:
        path = self.path_for(name)
        try:
            payload = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as error:
            raise BreakerStorageError(name, "load", str(error)) from error

        try:
            return _STATE_ADAPTER.validate_json(payload)
        except ValidationError as error:
            raise BreakerStorageError(
                name, "load", f"malformed state file {path}"
            ) from error

    def save(self, name: str, state: BreakerState) -> None:
        payload = _STATE_ADAPTER.dump_json(state)
        path = self.path_for(name)
        temp_path: Path | None = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=self._directory,
                prefix=".breaker-",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                handle.write(payload)
            os.replace(temp_path, path)
        except OSError as error:
            if temp_path is not None:
                with suppress(OSError):
                    temp_path.unlink(missing_ok=True)
            raise BreakerStorageError(name, "save", str(error)) from error

    def delete(self, name: str) -> None:
        try:
            self.path_for(name).unlink(missing_ok=True)
        except OSError as error:
            raise BreakerStorageError(name, "delete", str(error)) from error
