"""Registration API routes — the caller is taken from the X-User-Id header."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, Query, status

from eventify.config import settings
from eventify.dependencies import get_current_user, get_service
from eventify.domain import UserProfile
from eventify.schemas.registration import MyRegistrationOut, RegistrationCreate, RegistrationOut
from eventify.services.registration_service import RegistrationService

logger = logging.getLogger(__name__)
router = APIRouter()


def _joined(service: RegistrationService, items) -> list[MyRegistrationOut]:
    return [
        MyRegistrationOut.from_joined(item, service.event_availability(item.event.event_id))
        for item in items
    ]


@router.post("", response_model=RegistrationOut, status_code=status.HTTP_201_CREATED)
def register_for_event(
    payload: RegistrationCreate,
    idempotency_key: Optional[str] = Header(None),
    user: UserProfile = Depends(get_current_user),
    service: RegistrationService = Depends(get_service),
):
    """Register the caller (and optional companions) for an event.

    Without ``participants`` the caller's own profile is used. Repeating a
    request with the same idempotency key returns the original registration.
    """
    return service.register_for_event(
        payload.event_id,
        user.user_id,
        participants=payload.participants,
        idempotency_key=payload.idempotency_key or idempotency_key,
    )


@router.get("", response_model=list[MyRegistrationOut])
def my_registrations(
    user: UserProfile = Depends(get_current_user),
    service: RegistrationService = Depends(get_service),
):
    """The caller's active registrations with event details, soonest event first."""
    return _joined(service, service.my_registrations(user.user_id))


@router.get("/reminders", response_model=list[MyRegistrationOut])
def upcoming_reminders(
    within_days: int = Query(settings.REMINDER_WINDOW_DAYS, ge=0),
    user: UserProfile = Depends(get_current_user),
    service: RegistrationService = Depends(get_service),
):
    """Registrations for events happening within the next ``within_days`` days."""
    return _joined(service, service.upcoming_reminders(user.user_id, within_days))


@router.get("/{registration_id}", response_model=RegistrationOut)
def get_registration(
    registration_id: str,
    user: UserProfile = Depends(get_current_user),
    service: RegistrationService = Depends(get_service),
):
    """Fetch one of the caller's registrations."""
    return service.get_registration(registration_id, user.user_id)


@router.put("/{registration_id}/cancel", response_model=RegistrationOut)
def cancel_registration(
    registration_id: str,
    user: UserProfile = Depends(get_current_user),
    service: RegistrationService = Depends(get_service),
):
    """Cancel one of the caller's registrations, freeing its slots."""
    return service.cancel_registration(registration_id, user.user_id)
