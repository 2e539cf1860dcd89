"""JSON-file implementation of the storage backend (offline key-value store).

Layout of the file::

    {
      "schema_version": 1,
      "events": {"<event_id>": {...}},
      "registrations": {"<event_id>": [{...}, ...]},
      "profiles": {"<user_id>": {...}},
      "outbox": [{...}, ...]
    }

Registrations are keyed by event id to an ordered list of entries, so
deleting an event's key removes every registration of that event.

Single writer: one backend instance per file. Transactions are serialised
with a process lock; a failed transaction restores the previous state and
nothing is written.
"""
import copy
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from eventify.config import settings
from eventify.domain import Event, Registration, RegistrationStatus, UserProfile, same_user
from eventify.repositories.interfaces import (
    EventRepository,
    ProfileRepository,
    RegistrationRepository,
    StorageBackend,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def _empty_state() -> dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "events": {},
        "registrations": {},
        "profiles": {},
        "outbox": [],
    }


class LocalEventRepository(EventRepository):
    def __init__(self, backend: "LocalBackend") -> None:
        self._backend = backend

    def add(self, event: Event) -> Event:
        with self._backend.transaction():
            self._backend.state["events"][event.event_id] = event.to_dict()
            self._backend.state["registrations"].setdefault(event.event_id, [])
        return event

    def save(self, event: Event) -> Event:
        with self._backend.transaction():
            self._backend.state["events"][event.event_id] = event.to_dict()
        return event

    def remove(self, event_id: str) -> None:
        with self._backend.transaction():
            self._backend.state["events"].pop(event_id, None)

    def get(self, event_id: str) -> Optional[Event]:
        with self._backend.lock:
            data = self._backend.state["events"].get(event_id)
            return Event.from_dict(data) if data else None

    def list_all(self) -> list[Event]:
        with self._backend.lock:
            events = [Event.from_dict(d) for d in self._backend.state["events"].values()]
        return sorted(events, key=lambda e: e.sort_key)


class LocalRegistrationRepository(RegistrationRepository):
    def __init__(self, backend: "LocalBackend") -> None:
        self._backend = backend

    def _entries(self) -> Iterator[dict[str, Any]]:
        for entries in self._backend.state["registrations"].values():
            yield from entries

    def add(self, registration: Registration) -> Registration:
        with self._backend.transaction():
            bucket = self._backend.state["registrations"].setdefault(registration.event_id, [])
            bucket.append(registration.to_dict())
        return registration

    def save(self, registration: Registration) -> Registration:
        with self._backend.transaction():
            bucket = self._backend.state["registrations"].setdefault(registration.event_id, [])
            for index, entry in enumerate(bucket):
                if entry["registration_id"] == registration.registration_id:
                    bucket[index] = registration.to_dict()
                    break
            else:
                bucket.append(registration.to_dict())
        return registration

    def get(self, registration_id: str) -> Optional[Registration]:
        with self._backend.lock:
            for entry in self._entries():
                if entry["registration_id"] == registration_id:
                    return Registration.from_dict(entry)
        return None

    def for_event(self, event_id: str, status: Optional[RegistrationStatus] = None) -> list[Registration]:
        with self._backend.lock:
            entries = list(self._backend.state["registrations"].get(event_id, []))
        registrations = [Registration.from_dict(e) for e in entries]
        if status is not None:
            registrations = [r for r in registrations if r.status == status]
        return registrations

    def for_user(self, user_id: str, status: Optional[RegistrationStatus] = None) -> list[Registration]:
        with self._backend.lock:
            registrations = [
                Registration.from_dict(e) for e in self._entries() if same_user(e["user_id"], user_id)
            ]
        if status is not None:
            registrations = [r for r in registrations if r.status == status]
        return sorted(registrations, key=lambda r: r.registered_at)

    def find_by_idempotency_key(self, user_id: str, key: str) -> Optional[Registration]:
        with self._backend.lock:
            for entry in self._entries():
                if entry.get("idempotency_key") == key and same_user(entry["user_id"], user_id):
                    return Registration.from_dict(entry)
        return None

    def remove_for_event(self, event_id: str) -> int:
        with self._backend.transaction():
            removed = self._backend.state["registrations"].pop(event_id, [])
        return len(removed)

    def replace_for_user(self, user_id: str, registrations: list[Registration]) -> None:
        """Drop every local entry of a user and store ``registrations`` instead."""
        with self._backend.transaction():
            buckets = self._backend.state["registrations"]
            for event_id in list(buckets):
                buckets[event_id] = [e for e in buckets[event_id] if not same_user(e["user_id"], user_id)]
            for registration in registrations:
                buckets.setdefault(registration.event_id, []).append(registration.to_dict())


class LocalProfileRepository(ProfileRepository):
    def __init__(self, backend: "LocalBackend") -> None:
        self._backend = backend

    def get(self, user_id: str) -> Optional[UserProfile]:
        with self._backend.lock:
            for key, data in self._backend.state["profiles"].items():
                if same_user(key, user_id):
                    return UserProfile.from_dict(data)
        return None

    def put(self, profile: UserProfile) -> UserProfile:
        with self._backend.transaction():
            self._backend.state["profiles"][profile.user_id] = profile.to_dict()
        return profile


class LocalBackend(StorageBackend):
    """Storage backend persisted to a single JSON file."""

    def __init__(self, path: Union[str, Path, None] = None) -> None:
        self.path = Path(path or settings.OFFLINE_STORE_PATH)
        self.lock = threading.RLock()
        self.state = self._load()
        self._in_transaction = False
        self.events = LocalEventRepository(self)
        self.registrations = LocalRegistrationRepository(self)
        self.profiles = LocalProfileRepository(self)

    @property
    def outbox(self) -> list[dict[str, Any]]:
        """Operations recorded while offline, oldest first."""
        return self.state["outbox"]

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return _empty_state()
        try:
            with self.path.open(encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            corrupt = self.path.with_suffix(self.path.suffix + ".corrupt")
            logger.warning("Unreadable offline store %s (%s); moved to %s", self.path, exc, corrupt)
            os.replace(self.path, corrupt)
            return _empty_state()
        state = _empty_state()
        state.update({k: v for k, v in data.items() if k in state})
        return state

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".eventify-", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self.state, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    @contextmanager
    def transaction(self, event_id: Optional[str] = None) -> Iterator[None]:
        with self.lock:
            if self._in_transaction:
                # Joined the enclosing transaction; it commits or restores.
                yield
                return
            snapshot = copy.deepcopy(self.state)
            self._in_transaction = True
            try:
                yield
            except BaseException:
                self.state = snapshot
                raise
            finally:
                self._in_transaction = False
            self._write()
