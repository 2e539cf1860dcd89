"""Repository interfaces.

Backends must be swappable and return domain models. The capacity and
uniqueness rules live in the services and are written once against these
interfaces; a backend only stores and fetches.
"""
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional

from eventify.domain import Event, Registration, RegistrationStatus, UserProfile


class EventRepository(ABC):
    """Interface for event persistence operations."""

    @abstractmethod
    def add(self, event: Event) -> Event:
        ...

    @abstractmethod
    def save(self, event: Event) -> Event:
        """Overwrite an existing event."""
        ...

    @abstractmethod
    def remove(self, event_id: str) -> None:
        ...

    @abstractmethod
    def get(self, event_id: str) -> Optional[Event]:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def list_all(self) -> list[Event]:
        """Return all events ordered by (date, time) ascending."""
        ...


class RegistrationRepository(ABC):
    """Interface for registration persistence operations."""

    @abstractmethod
    def add(self, registration: Registration) -> Registration:
        ...

    @abstractmethod
    def save(self, registration: Registration) -> Registration:
        """Overwrite an existing registration (status changes)."""
        ...

    @abstractmethod
    def get(self, registration_id: str) -> Optional[Registration]:
        ...

    @abstractmethod
    def for_event(
        self, event_id: str, status: Optional[RegistrationStatus] = None
    ) -> list[Registration]:
        """Return registrations of an event ordered by registered_at."""
        ...

    @abstractmethod
    def for_user(
        self, user_id: str, status: Optional[RegistrationStatus] = None
    ) -> list[Registration]:
        """Return registrations of a user (case-insensitive id match)."""
        ...

    @abstractmethod
    def find_by_idempotency_key(self, user_id: str, key: str) -> Optional[Registration]:
        ...

    @abstractmethod
    def remove_for_event(self, event_id: str) -> int:
        """Delete every registration of an event; return how many were removed."""
        ...


class ProfileRepository(ABC):
    """Interface for user profile lookups."""

    @abstractmethod
    def get(self, user_id: str) -> Optional[UserProfile]:
        ...


class StorageBackend(ABC):
    """A set of repositories sharing one transactional scope."""

    events: EventRepository
    registrations: RegistrationRepository
    profiles: ProfileRepository

    @abstractmethod
    def transaction(self, event_id: Optional[str] = None) -> AbstractContextManager[None]:
        """Commit on success, roll back on error.

        When ``event_id`` is given the backend also takes whatever lock it
        has on that event (a row lock for SQL) for the transaction's lifetime.
        """
        ...
