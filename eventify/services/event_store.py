"""Event store — CRUD and filtering for events.

Source of truth for capacity during registration checks. Deleting an event
cascades to its registrations inside the same transaction.
"""
import logging
import uuid
from dataclasses import replace
from datetime import date
from typing import Any, Callable, Mapping, Optional

from eventify.clock import local_today, utc_now
from eventify.domain import Event, EventFilter
from eventify.errors import NotFoundError
from eventify.repositories.interfaces import StorageBackend
from eventify.services.locks import EventLockRegistry
from eventify.validation import clean_event_fields

logger = logging.getLogger(__name__)


def normalize_id(identifier: Any) -> str:
    """Accept loose identifiers: UUID objects, surrounding whitespace."""
    if identifier is None:
        return ""
    return str(identifier).strip()


class EventStore:
    """Service for event catalog operations."""

    def __init__(
        self,
        backend: StorageBackend,
        locks: Optional[EventLockRegistry] = None,
        today: Callable[[], date] = local_today,
    ) -> None:
        self._backend = backend
        self._locks = locks or EventLockRegistry()
        self._today = today

    def create(self, draft: Mapping[str, Any], created_by: Optional[str] = None) -> Event:
        """Validate a draft and persist it as a new event.

        Raises:
            ValidationError: listing every missing or malformed field.
        """
        fields = clean_event_fields(draft)
        now = utc_now()
        event = Event(
            event_id=str(uuid.uuid4()),
            created_by=created_by,
            created_at=now,
            updated_at=now,
            **fields,
        )
        with self._backend.transaction():
            event = self._backend.events.add(event)
        logger.info("Created event '%s' (%s), capacity %d", event.title, event.event_id, event.capacity)
        return event

    def update(self, event_id: Any, patch: Mapping[str, Any]) -> Event:
        """Apply a partial update, re-validating only the changed fields.

        Raises:
            NotFoundError: If the event does not exist.
            ValidationError: If a patched field is invalid or read-only.
        """
        event_id = normalize_id(event_id)
        with self._locks.hold(event_id), self._backend.transaction(event_id):
            event = self.get(event_id)
            changes = clean_event_fields(patch, partial=True)
            event = self._backend.events.save(replace(event, updated_at=utc_now(), **changes))
        logger.info("Updated event %s (%s)", event_id, ", ".join(sorted(changes)) or "no changes")
        return event

    def delete(self, event_id: Any) -> int:
        """Delete an event and every registration referencing it.

        Returns the number of registrations removed.

        Raises:
            NotFoundError: If the event does not exist.
        """
        event_id = normalize_id(event_id)
        with self._locks.hold(event_id), self._backend.transaction(event_id):
            self.get(event_id)
            removed = self._backend.registrations.remove_for_event(event_id)
            self._backend.events.remove(event_id)
        logger.info("Deleted event %s and %d registrations", event_id, removed)
        return removed

    def get(self, event_id: Any) -> Event:
        """Return an event by ID.

        Raises:
            NotFoundError: If the event does not exist.
        """
        event_id = normalize_id(event_id)
        event = self._backend.events.get(event_id) if event_id else None
        if event is None:
            raise NotFoundError("Event", event_id)
        return event

    def list(self, event_filter: Optional[EventFilter] = None) -> list[Event]:
        """Return events matching every set filter key, ordered by (date, time)."""
        event_filter = event_filter or EventFilter()
        today = self._today()
        events = [e for e in self._backend.events.list_all() if event_filter.matches(e, today)]
        return sorted(events, key=lambda e: e.sort_key)
