"""Event API routes — delegates to the event store for validation and cascades."""
import logging
import datetime as dt
from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from eventify.dependencies import get_service, require_admin
from eventify.domain import EventCategory, EventFilter, UserProfile
from eventify.schemas.event import EventCreate, EventUpdate, EventOut
from eventify.services.registration_service import RegistrationService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[EventOut])
def list_events(
    city: Optional[str] = Query(None),
    category: Optional[EventCategory] = Query(None),
    date: Optional[dt.date] = Query(None),
    search: Optional[str] = Query(None),
    upcoming: bool = Query(False),
    service: RegistrationService = Depends(get_service),
):
    """List events with optional filters, each with its current occupancy."""
    event_filter = EventFilter(city=city, category=category, date=date, search=search, upcoming_only=upcoming)
    return [EventOut.from_availability(a) for a in service.list_events(event_filter)]


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, service: RegistrationService = Depends(get_service)):
    """Fetch a single event with its occupancy."""
    return EventOut.from_availability(service.event_availability(event_id))


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    admin: UserProfile = Depends(require_admin),
    service: RegistrationService = Depends(get_service),
):
    """Create a new event (admin only)."""
    event = service.events.create(payload.model_dump(), created_by=admin.user_id)
    return EventOut.from_availability(service.event_availability(event.event_id))


@router.put("/{event_id}", response_model=EventOut)
def update_event(
    event_id: str,
    payload: EventUpdate,
    admin: UserProfile = Depends(require_admin),
    service: RegistrationService = Depends(get_service),
):
    """Update any subset of an event's fields (admin only)."""
    service.events.update(event_id, payload.model_dump(exclude_unset=True))
    return EventOut.from_availability(service.event_availability(event_id))


@router.delete("/{event_id}")
def delete_event(
    event_id: str,
    admin: UserProfile = Depends(require_admin),
    service: RegistrationService = Depends(get_service),
):
    """Delete an event and all of its registrations (admin only)."""
    removed = service.events.delete(event_id)
    logger.info("Admin %s deleted event %s", admin.user_id, event_id)
    return {"status": "ok", "registrations_removed": removed}
