"""Offline mirror — the registration service over the local JSON store.

While the API is reachable every operation goes to the server and the
result is copied locally. While it is not, the same RegistrationService
runs against LocalBackend (same capacity, uniqueness and cascade rules) and
the operation is queued in the store's outbox. sync() replays the outbox
with the server as the authority:

- events are replaced by the server's list; local events the server no
  longer has are deleted together with their registrations;
- queued cancels are replayed (already cancelled / unknown count as done);
- queued reservations are submitted with the local registration id as
  idempotency key, unless the server already holds an active registration
  for the same (event, user) pair;
- the user's local registrations are then replaced by the server's.

One mirror per store file; see LocalBackend.
"""
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Callable, Iterable, Optional

from eventify.client import RemoteClient
from eventify.clock import local_today
from eventify.domain import Registration, RegistrationWithEvent, UserProfile, same_user
from eventify.errors import (
    AlreadyCancelledError,
    DomainError,
    NotFoundError,
    RemoteUnavailableError,
)
from eventify.repositories.local import LocalBackend
from eventify.services.locks import EventLockRegistry
from eventify.services.registration_service import RegistrationService
from eventify.validation import clean_participants

logger = logging.getLogger(__name__)

RESERVE = "reserve"
CANCEL = "cancel"


@dataclass
class SyncReport:
    submitted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    rejected: dict[str, str] = field(default_factory=dict)
    cancelled: list[str] = field(default_factory=list)
    events_removed: list[str] = field(default_factory=list)


class OfflineMirror:
    def __init__(
        self,
        backend: LocalBackend,
        remote: RemoteClient,
        user_email: str,
        account_id: Optional[str] = None,
        locks: Optional[EventLockRegistry] = None,
        today: Callable[[], date] = local_today,
    ) -> None:
        self.backend = backend
        self.remote = remote
        self.user_id = user_email.strip().lower()
        self.account_id = account_id
        self.service = RegistrationService(backend, locks=locks, today=today)
        self._today = today

    # ----- Local state -----

    def set_profile(self, name: str, phone: str = "", birthdate: Optional[date] = None) -> UserProfile:
        profile = UserProfile(user_id=self.user_id, name=name, email=self.user_id, phone=phone, birthdate=birthdate)
        return self.backend.profiles.put(profile)

    def pending(self) -> list[dict[str, Any]]:
        return list(self.backend.outbox)

    def my_registrations(self) -> list[RegistrationWithEvent]:
        return self.service.my_registrations(self.user_id)

    def _queue(self, op: str, registration_id: str) -> None:
        with self.backend.transaction():
            self.backend.outbox.append({"op": op, "registration_id": registration_id})

    def _dequeue(self, op: str, registration_id: str) -> None:
        with self.backend.transaction():
            self.backend.outbox[:] = [
                entry for entry in self.backend.outbox
                if not (entry["op"] == op and entry["registration_id"] == registration_id)
            ]

    def _is_pending(self, op: str, registration_id: str) -> bool:
        return any(
            entry["op"] == op and entry["registration_id"] == registration_id
            for entry in self.backend.outbox
        )

    def _store_remote(self, registration: Registration) -> Registration:
        """Copy a server registration locally under the mirror's user id."""
        with self.backend.transaction():
            if self.backend.events.get(registration.event_id) is None:
                self.backend.events.save(self.remote.get_event(registration.event_id))
            return self.backend.registrations.save(replace(registration, user_id=self.user_id))

    def _is_mine(self, registration: Registration) -> bool:
        return (
            same_user(registration.user_id, self.user_id)
            or same_user(registration.user_id, self.account_id)
            or any(same_user(p.email, self.user_id) for p in registration.participants)
        )

    # ----- Operations -----

    def register(self, event_id: str, participants: Optional[Iterable[Any]] = None) -> Registration:
        payload = None
        if participants is not None:
            payload = [p.to_dict() for p in clean_participants(participants, self._today())]
        try:
            registration = self.remote.register(event_id, payload, idempotency_key=str(uuid.uuid4()))
        except RemoteUnavailableError:
            registration = self.service.register_for_event(event_id, self.user_id, participants)
            self._queue(RESERVE, registration.registration_id)
            logger.info("Queued offline reservation %s for event %s", registration.registration_id, event_id)
            return registration
        return self._store_remote(registration)

    def cancel(self, registration_id: str) -> Registration:
        if self._is_pending(RESERVE, registration_id):
            registration = self.service.cancel_registration(registration_id, self.user_id)
            self._dequeue(RESERVE, registration_id)
            logger.info("Dropped unsent reservation %s", registration_id)
            return registration
        try:
            registration = self.remote.cancel(registration_id)
        except RemoteUnavailableError:
            registration = self.service.cancel_registration(registration_id, self.user_id)
            self._queue(CANCEL, registration_id)
            logger.info("Queued offline cancellation of %s", registration_id)
            return registration
        return self._store_remote(registration)

    def sync(self) -> SyncReport:
        """Reconcile with the server.

        Raises:
            RemoteUnavailableError: If the server cannot be reached; the
                outbox keeps every entry not yet replayed.
        """
        report = SyncReport()
        self._refresh_events(report)

        remote_active = {
            r.event_id for r in self.remote.my_registrations()
            if r.is_active and self._is_mine(r)
        }
        for entry in list(self.backend.outbox):
            if entry["op"] == CANCEL:
                self._replay_cancel(entry["registration_id"], remote_active, report)
            else:
                self._replay_reserve(entry["registration_id"], remote_active, report)

        authoritative = [
            replace(r, user_id=self.user_id) for r in self.remote.my_registrations() if self._is_mine(r)
        ]
        self.backend.registrations.replace_for_user(self.user_id, authoritative)
        logger.info(
            "Sync finished: %d submitted, %d skipped, %d rejected, %d cancelled",
            len(report.submitted), len(report.skipped), len(report.rejected), len(report.cancelled),
        )
        return report

    def _refresh_events(self, report: SyncReport) -> None:
        remote_events = self.remote.list_events()
        remote_ids = {e.event_id for e in remote_events}
        for event in self.backend.events.list_all():
            if event.event_id not in remote_ids:
                self.service.events.delete(event.event_id)
                report.events_removed.append(event.event_id)
        with self.backend.transaction():
            for event in remote_events:
                self.backend.events.save(event)

    def _replay_cancel(self, registration_id: str, remote_active: set[str], report: SyncReport) -> None:
        local = self.backend.registrations.get(registration_id)
        try:
            self.remote.cancel(registration_id)
        except (AlreadyCancelledError, NotFoundError):
            logger.info("Cancellation of %s already applied remotely", registration_id)
        if local is not None:
            remote_active.discard(local.event_id)
        report.cancelled.append(registration_id)
        self._dequeue(CANCEL, registration_id)

    def _replay_reserve(self, registration_id: str, remote_active: set[str], report: SyncReport) -> None:
        local = self.backend.registrations.get(registration_id)
        if local is None or not local.is_active:
            logger.warning("Queued reservation %s no longer exists locally", registration_id)
            report.rejected[registration_id] = NotFoundError.code.value
            self._dequeue(RESERVE, registration_id)
            return
        if local.event_id in remote_active:
            logger.info("Skipping %s: server already has a registration for event %s",
                        registration_id, local.event_id)
            report.skipped.append(registration_id)
            self._dequeue(RESERVE, registration_id)
            return
        try:
            self.remote.register(
                local.event_id,
                [p.to_dict() for p in local.participants],
                idempotency_key=registration_id,
            )
        except DomainError as exc:
            logger.warning("Server rejected queued reservation %s: %s", registration_id, exc)
            report.rejected[registration_id] = exc.code.value
        else:
            remote_active.add(local.event_id)
            report.submitted.append(registration_id)
        self._dequeue(RESERVE, registration_id)
