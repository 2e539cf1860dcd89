"""Administrative read routes."""
from fastapi import APIRouter, Depends

from eventify.dependencies import get_service, require_admin
from eventify.domain import UserProfile
from eventify.schemas.registration import RegistrationOut
from eventify.services.registration_service import RegistrationService

router = APIRouter()


@router.get("/events/{event_id}/registrations", response_model=list[RegistrationOut])
def event_registrations(
    event_id: str,
    admin: UserProfile = Depends(require_admin),
    service: RegistrationService = Depends(get_service),
):
    """All active registrations of an event, with participant detail."""
    return service.registrations_for_event(event_id)
