"""Registration ledger — owns registrations and enforces their invariants.

- Capacity: a registration occupies one slot per participant; a reservation
  is rejected when active slots plus new participants exceed capacity.
- Uniqueness: at most one active registration per (event, user).

The ledger is the only code that changes registration status. reserve() and
cancel() run under the event's lock and inside one backend transaction, so
the count and the insert cannot interleave with another writer on the same
event.
"""
import logging
import uuid
from dataclasses import replace
from datetime import date
from typing import Any, Callable, Iterable, Optional

from eventify.clock import local_today, utc_now
from eventify.domain import Registration, RegistrationStatus, same_user
from eventify.errors import (
    AlreadyCancelledError,
    CapacityExceededError,
    DuplicateRegistrationError,
    ForbiddenError,
    NotFoundError,
    PastEventError,
    ValidationError,
)
from eventify.repositories.interfaces import StorageBackend
from eventify.services.event_store import EventStore, normalize_id
from eventify.services.locks import EventLockRegistry
from eventify.validation import clean_participants

logger = logging.getLogger(__name__)


class RegistrationLedger:
    def __init__(
        self,
        backend: StorageBackend,
        events: EventStore,
        locks: Optional[EventLockRegistry] = None,
        today: Callable[[], date] = local_today,
    ) -> None:
        self._backend = backend
        self._events = events
        self._locks = locks or EventLockRegistry()
        self._today = today

    def active_count_for(self, event_id: Any) -> int:
        """Sum of participants across the event's active registrations."""
        active = self._backend.registrations.for_event(normalize_id(event_id), RegistrationStatus.active)
        return sum(r.participant_count for r in active)

    def has_active_registration(self, event_id: Any, user_id: str) -> bool:
        active = self._backend.registrations.for_event(normalize_id(event_id), RegistrationStatus.active)
        return any(same_user(r.user_id, user_id) for r in active)

    def reserve(
        self,
        event_id: Any,
        user_id: str,
        participants: Iterable[Any],
        idempotency_key: Optional[str] = None,
    ) -> Registration:
        """Create an active registration if the event can take it.

        A repeated call with the same ``idempotency_key`` from the same user
        returns the registration the first call created.
        Reusing a key for a different event is rejected.

        Raises:
            ValidationError: If the participant list is empty or malformed,
                or the idempotency key belongs to another event.
            NotFoundError: If the event does not exist.
            PastEventError: If the event date is before today.
            DuplicateRegistrationError: If the user already holds an active registration.
            CapacityExceededError: If the participants do not fit.
        """
        event_id = normalize_id(event_id)
        today = self._today()
        cleaned = clean_participants(participants, today)

        with self._locks.hold(event_id), self._backend.transaction(event_id):
            if idempotency_key:
                previous = self._backend.registrations.find_by_idempotency_key(user_id, idempotency_key)
                if previous is not None and previous.event_id != event_id:
                    raise ValidationError({"idempotency_key": "already used for another event"})
                if previous is not None:
                    logger.info("Replayed reservation %s for key %s", previous.registration_id, idempotency_key)
                    return previous

            event = self._events.get(event_id)
            if event.date < today:
                raise PastEventError()
            if self.has_active_registration(event_id, user_id):
                raise DuplicateRegistrationError()

            occupied = self.active_count_for(event_id)
            if occupied + len(cleaned) > event.capacity:
                raise CapacityExceededError(remaining=max(event.capacity - occupied, 0))

            registration = self._backend.registrations.add(Registration(
                registration_id=str(uuid.uuid4()),
                event_id=event_id,
                user_id=user_id,
                participants=cleaned,
                registered_at=utc_now(),
                status=RegistrationStatus.active,
                idempotency_key=idempotency_key or None,
            ))

        logger.info(
            "User %s reserved %d slot(s) for event %s (%d/%d)",
            user_id, len(cleaned), event_id, occupied + len(cleaned), event.capacity,
        )
        return registration

    def cancel(self, registration_id: Any, requesting_user_id: str) -> Registration:
        """Flip an owned, active registration to cancelled.

        Raises:
            NotFoundError: If the registration does not exist.
            ForbiddenError: If the requester does not own it.
            AlreadyCancelledError: If it is already cancelled.
        """
        registration = self.get(registration_id)
        with self._locks.hold(registration.event_id), self._backend.transaction(registration.event_id):
            # Re-read under the lock; a concurrent cancel may have won.
            registration = self.get(registration_id)
            if not same_user(registration.user_id, requesting_user_id):
                raise ForbiddenError("Not authorized to cancel this registration")
            if registration.status == RegistrationStatus.cancelled:
                raise AlreadyCancelledError()
            registration = self._backend.registrations.save(replace(
                registration,
                status=RegistrationStatus.cancelled,
                cancelled_at=utc_now(),
            ))
        logger.info("User %s cancelled registration %s", requesting_user_id, registration.registration_id)
        return registration

    def get(self, registration_id: Any) -> Registration:
        registration_id = normalize_id(registration_id)
        registration = self._backend.registrations.get(registration_id) if registration_id else None
        if registration is None:
            raise NotFoundError("Registration", registration_id)
        return registration

    def list_for_user(self, user_id: str, include_cancelled: bool = False) -> list[Registration]:
        status = None if include_cancelled else RegistrationStatus.active
        return self._backend.registrations.for_user(user_id, status)

    def list_for_event(self, event_id: Any, include_cancelled: bool = False) -> list[Registration]:
        """Registrations of an existing event.

        Raises:
            NotFoundError: If the event does not exist (including deleted events).
        """
        event = self._events.get(event_id)
        status = None if include_cancelled else RegistrationStatus.active
        return self._backend.registrations.for_event(event.event_id, status)
