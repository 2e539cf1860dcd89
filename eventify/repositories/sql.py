"""SQLAlchemy implementation of the storage backend.

Queries the ORM models and converts rows to domain models.
"""
import logging
from contextlib import contextmanager
from datetime import timezone
from typing import Iterator, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eventify.domain import Event, Participant, Registration, RegistrationStatus, UserProfile
from eventify.errors import DuplicateRegistrationError
from eventify.models.event import Event as EventRow
from eventify.models.registration import Registration as RegistrationRow
from eventify.models.user import User as UserRow
from eventify.repositories.interfaces import (
    EventRepository,
    ProfileRepository,
    RegistrationRepository,
    StorageBackend,
)

logger = logging.getLogger(__name__)


def _aware(value):
    """SQLite drops tzinfo; stored datetimes are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _event_to_domain(row: EventRow) -> Event:
    return Event(
        event_id=row.event_id,
        title=row.title,
        city=row.city,
        category=row.category,
        date=row.date,
        time=row.time,
        location=row.location,
        capacity=row.capacity,
        description=row.description or "",
        image_url=row.image_url,
        created_by=row.created_by,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _registration_to_domain(row: RegistrationRow) -> Registration:
    return Registration(
        registration_id=row.registration_id,
        event_id=row.event_id,
        user_id=row.user_id,
        participants=tuple(Participant.from_dict(p) for p in row.participants),
        registered_at=_aware(row.registered_at),
        status=row.status,
        idempotency_key=row.idempotency_key,
        cancelled_at=_aware(row.cancelled_at),
    )


_EVENT_COLUMNS = (
    "title", "city", "category", "date", "time", "location",
    "capacity", "description", "image_url", "created_by",
)


class SqlEventRepository(EventRepository):
    def __init__(self, db: Session) -> None:
        self._db = db

    def add(self, event: Event) -> Event:
        row = EventRow(event_id=event.event_id, **{c: getattr(event, c) for c in _EVENT_COLUMNS})
        self._db.add(row)
        self._db.flush()
        self._db.refresh(row)
        return _event_to_domain(row)

    def save(self, event: Event) -> Event:
        row = self._db.get(EventRow, event.event_id)
        for column in _EVENT_COLUMNS:
            setattr(row, column, getattr(event, column))
        self._db.flush()
        self._db.refresh(row)
        return _event_to_domain(row)

    def remove(self, event_id: str) -> None:
        row = self._db.get(EventRow, event_id)
        if row is not None:
            self._db.delete(row)
            self._db.flush()

    def get(self, event_id: str) -> Optional[Event]:
        row = self._db.get(EventRow, event_id)
        return _event_to_domain(row) if row else None

    def list_all(self) -> list[Event]:
        rows = self._db.query(EventRow).order_by(EventRow.date, EventRow.time).all()
        return [_event_to_domain(r) for r in rows]


class SqlRegistrationRepository(RegistrationRepository):
    def __init__(self, db: Session) -> None:
        self._db = db

    def add(self, registration: Registration) -> Registration:
        row = RegistrationRow(
            registration_id=registration.registration_id,
            event_id=registration.event_id,
            user_id=registration.user_id,
            participants=[p.to_dict() for p in registration.participants],
            registered_at=registration.registered_at,
            status=registration.status,
            idempotency_key=registration.idempotency_key,
        )
        self._db.add(row)
        self._db.flush()
        return _registration_to_domain(row)

    def save(self, registration: Registration) -> Registration:
        row = self._db.get(RegistrationRow, registration.registration_id)
        row.status = registration.status
        row.cancelled_at = registration.cancelled_at
        self._db.flush()
        return _registration_to_domain(row)

    def get(self, registration_id: str) -> Optional[Registration]:
        row = self._db.get(RegistrationRow, registration_id)
        return _registration_to_domain(row) if row else None

    def for_event(self, event_id: str, status: Optional[RegistrationStatus] = None) -> list[Registration]:
        query = self._db.query(RegistrationRow).filter(RegistrationRow.event_id == event_id)
        if status is not None:
            query = query.filter(RegistrationRow.status == status)
        return [_registration_to_domain(r) for r in query.order_by(RegistrationRow.registered_at).all()]

    def for_user(self, user_id: str, status: Optional[RegistrationStatus] = None) -> list[Registration]:
        query = self._db.query(RegistrationRow).filter(
            func.lower(RegistrationRow.user_id) == user_id.strip().lower()
        )
        if status is not None:
            query = query.filter(RegistrationRow.status == status)
        return [_registration_to_domain(r) for r in query.order_by(RegistrationRow.registered_at).all()]

    def find_by_idempotency_key(self, user_id: str, key: str) -> Optional[Registration]:
        row = (
            self._db.query(RegistrationRow)
            .filter(
                func.lower(RegistrationRow.user_id) == user_id.strip().lower(),
                RegistrationRow.idempotency_key == key,
            )
            .first()
        )
        return _registration_to_domain(row) if row else None

    def remove_for_event(self, event_id: str) -> int:
        removed = (
            self._db.query(RegistrationRow)
            .filter(RegistrationRow.event_id == event_id)
            .delete(synchronize_session="fetch")
        )
        self._db.flush()
        return removed


class SqlProfileRepository(ProfileRepository):
    def __init__(self, db: Session) -> None:
        self._db = db

    def get(self, user_id: str) -> Optional[UserProfile]:
        row = self._db.get(UserRow, user_id)
        if not row:
            return None
        return UserProfile(
            user_id=row.user_id,
            name=row.name,
            email=row.email,
            phone=row.phone or "",
            birthdate=row.birthdate,
            is_admin=bool(row.is_admin),
        )


class SqlBackend(StorageBackend):
    """Storage backend bound to one SQLAlchemy session (one request)."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.events = SqlEventRepository(db)
        self.registrations = SqlRegistrationRepository(db)
        self.profiles = SqlProfileRepository(db)

    @contextmanager
    def transaction(self, event_id: Optional[str] = None) -> Iterator[None]:
        try:
            if event_id is not None:
                # Row lock on the event serialises reservations across workers;
                # SQLite ignores FOR UPDATE and relies on the in-process lock.
                self.db.query(EventRow).filter(EventRow.event_id == event_id).with_for_update().first()
            yield
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if "registrations" not in str(exc.orig):
                raise
            logger.warning("Concurrent registration rejected by unique index: %s", exc.orig)
            raise DuplicateRegistrationError() from exc
        except Exception:
            self.db.rollback()
            raise
