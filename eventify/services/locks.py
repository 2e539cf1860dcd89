"""Per-event mutual exclusion for the ledger's check-then-act sequences."""
import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class EventLockRegistry:
    """Hands out one lock per event id.

    Reservations and cancellations on the same event run one at a time;
    different events never wait on each other. Locks nobody holds are
    garbage-collected.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, event_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(event_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[event_id] = lock
            return lock

    @contextmanager
    def hold(self, event_id: str) -> Iterator[None]:
        lock = self.lock_for(event_id)
        with lock:
            yield
