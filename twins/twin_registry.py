"""
Twin Registry - owns the set of monitored twins and their buffers
"""
import itertools
import logging
import threading
from typing import Dict, List, Optional

from .errors import InvalidArgumentError, TwinNotFoundError
from .rolling_buffer import DEFAULT_CAPACITY, RollingBuffer
from .twin_data import HealthState, Snapshot, TerminalFailure

logger = logging.getLogger(__name__)


class Twin:
    """A monitored entity with its own identity and telemetry history"""

    def __init__(self, twin_id: str, name: str, capacity: int = DEFAULT_CAPACITY):
        self._id = twin_id
        self._name = name
        self._buffer = RollingBuffer(capacity)
        self._error: Optional[TerminalFailure] = None
        # Serialises overlapping cycles for this twin
        self._lock = threading.Lock()

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def buffer(self) -> RollingBuffer:
        return self._buffer

    @property
    def error(self) -> Optional[TerminalFailure]:
        with self._lock:
            return self._error

    def latest(self) -> Optional[Snapshot]:
        return self._buffer.latest()

    def health(self) -> Optional[HealthState]:
        """Health of the latest snapshot, or None before the first one arrives"""
        snapshot = self._buffer.latest()
        return snapshot.health if snapshot is not None else None

    def _record_success(self, snapshot: Snapshot):
        with self._lock:
            self._buffer.append(snapshot)
            self._error = None

    def _record_failure(self, failure: TerminalFailure):
        with self._lock:
            self._error = failure

    def __repr__(self) -> str:
        return f"Twin(id={self._id!r}, name={self._name!r}, samples={len(self._buffer)})"


class TwinRegistry:
    """
    Thread-safe, insertion-ordered collection of twins.

    Twins are only ever added; enumeration returns a copy so callers can
    iterate while another thread registers new twins.
    """

    def __init__(self, history_size: int = DEFAULT_CAPACITY):
        self.history_size = history_size
        self._twins: Dict[str, Twin] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def register(self, name: str) -> Twin:
        """
        Create a twin with a fresh id and an empty buffer

        Args:
            name: Display name, set once and never changed

        Raises:
            InvalidArgumentError: if name is not a non-empty string
        """
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(f"Twin name must be a non-empty string, got {name!r}")
        with self._lock:
            twin = Twin(str(next(self._ids)), name, self.history_size)
            self._twins[twin.id] = twin
        logger.info("Registered twin %s (%s)", twin.id, twin.name)
        return twin

    def list(self) -> List[Twin]:
        """All twins in registration order"""
        with self._lock:
            return list(self._twins.values())

    def get(self, twin_id: str) -> Twin:
        with self._lock:
            twin = self._twins.get(twin_id)
        if twin is None:
            raise TwinNotFoundError(twin_id)
        return twin

    def record_success(self, twin_id: str, snapshot: Snapshot):
        """Append a snapshot to the twin's buffer and clear its error state"""
        self.get(twin_id)._record_success(snapshot)

    def record_failure(self, twin_id: str, failure: TerminalFailure):
        """Set the twin's error state; the buffer is left untouched"""
        self.get(twin_id)._record_failure(failure)

    def __len__(self) -> int:
        with self._lock:
            return len(self._twins)

    def __contains__(self, twin_id: object) -> bool:
        with self._lock:
            return twin_id in self._twins
