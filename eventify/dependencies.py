"""FastAPI dependencies — request-scoped services and caller identity.

Authentication itself is an external collaborator; by the time a request
reaches us the caller is identified by the ``X-User-Id`` header.
"""
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from eventify.database import get_db
from eventify.domain import UserProfile
from eventify.errors import ForbiddenError, UnauthorizedError
from eventify.repositories.sql import SqlBackend
from eventify.services.registration_service import RegistrationService


def get_service(request: Request, db: Session = Depends(get_db)) -> RegistrationService:
    """Build the service over this request's session, sharing the app's event locks."""
    return RegistrationService(SqlBackend(db), locks=request.app.state.event_locks)


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    service: RegistrationService = Depends(get_service),
) -> UserProfile:
    if not x_user_id:
        raise UnauthorizedError()
    profile = service.backend.profiles.get(x_user_id.strip())
    if profile is None:
        raise UnauthorizedError("Unknown user")
    return profile


def require_admin(user: UserProfile = Depends(get_current_user)) -> UserProfile:
    if not user.is_admin:
        raise ForbiddenError("Administrator access required")
    return user
