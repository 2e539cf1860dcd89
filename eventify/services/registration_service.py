"""Registration service — the entry point HTTP handlers and the offline mirror use.

Holds no state of its own: it coordinates the event store and the ledger,
fills in the default participant from the caller's profile, and joins
registrations with their events for read views.
"""
import logging
from datetime import date, timedelta
from typing import Any, Callable, Iterable, Optional

from eventify.clock import local_today
from eventify.domain import (
    Event,
    EventAvailability,
    EventFilter,
    Registration,
    RegistrationWithEvent,
    same_user,
)
from eventify.errors import ForbiddenError, ValidationError
from eventify.repositories.interfaces import StorageBackend
from eventify.services.event_store import EventStore
from eventify.services.ledger import RegistrationLedger
from eventify.services.locks import EventLockRegistry

logger = logging.getLogger(__name__)


class RegistrationService:
    def __init__(
        self,
        backend: StorageBackend,
        locks: Optional[EventLockRegistry] = None,
        today: Callable[[], date] = local_today,
    ) -> None:
        self.backend = backend
        self.locks = locks or EventLockRegistry()
        self.events = EventStore(backend, locks=self.locks, today=today)
        self.ledger = RegistrationLedger(backend, self.events, locks=self.locks, today=today)
        self._today = today

    # ----- Registrations -----

    def register_for_event(
        self,
        event_id: Any,
        user_id: str,
        participants: Optional[Iterable[Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Registration:
        """Reserve slots for the caller; defaults to the caller as sole participant."""
        if participants is None:
            profile = self.backend.profiles.get(user_id)
            if profile is None:
                raise ValidationError(
                    {"participants": "required when the caller has no profile"},
                )
            participants = [profile.as_participant()]
        return self.ledger.reserve(event_id, user_id, participants, idempotency_key=idempotency_key)

    def cancel_registration(self, registration_id: Any, user_id: str) -> Registration:
        return self.ledger.cancel(registration_id, user_id)

    def get_registration(self, registration_id: Any, user_id: str) -> Registration:
        """Owner-only read of a single registration."""
        registration = self.ledger.get(registration_id)
        if not same_user(registration.user_id, user_id):
            raise ForbiddenError()
        return registration

    def my_registrations(self, user_id: str) -> list[RegistrationWithEvent]:
        """The caller's active registrations joined with their events, soonest first."""
        joined = []
        for registration in self.ledger.list_for_user(user_id):
            event = self.backend.events.get(registration.event_id)
            if event is None:
                logger.warning("Registration %s references missing event %s",
                               registration.registration_id, registration.event_id)
                continue
            joined.append(RegistrationWithEvent(registration=registration, event=event))
        return sorted(joined, key=lambda item: (item.event.sort_key, item.registration.registered_at))

    def registrations_for_event(self, event_id: Any) -> list[Registration]:
        """Administrative read; the caller must already be authorized as admin."""
        return self.ledger.list_for_event(event_id)

    def upcoming_reminders(self, user_id: str, within_days: int) -> list[RegistrationWithEvent]:
        """Active registrations whose event falls within the next ``within_days`` days."""
        if within_days < 0:
            raise ValidationError({"within_days": "must not be negative"})
        today = self._today()
        horizon = today + timedelta(days=within_days)
        return [
            item for item in self.my_registrations(user_id)
            if today <= item.event.date <= horizon
        ]

    # ----- Events with occupancy -----

    def event_availability(self, event_id: Any) -> EventAvailability:
        event = self.events.get(event_id)
        return self._availability(event)

    def list_events(self, event_filter: Optional[EventFilter] = None) -> list[EventAvailability]:
        return [self._availability(event) for event in self.events.list(event_filter)]

    def _availability(self, event: Event) -> EventAvailability:
        return EventAvailability(
            event=event,
            registered_count=self.ledger.active_count_for(event.event_id),
        )

