"""Per-aggregate write serialization.

Aggregates are loaded and saved as whole snapshots, so two commands on the
same id running at once could lose one of the updates. Services wrap each
load-modify-save in ``aggregate_locks.hold(id)``.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class AggregateLocks:
    """One ``threading.Lock`` per aggregate id, created on first use."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, aggregate_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(aggregate_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[aggregate_id] = lock
            return lock

    @contextmanager
    def hold(self, aggregate_id: str) -> Iterator[None]:
        """Block until no other writer holds ``aggregate_id``."""
        lock = self.lock_for(aggregate_id)
        with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)


# Shared by every service in this process
aggregate_locks = AggregateLocks()
