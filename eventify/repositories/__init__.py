from eventify.repositories.interfaces import (
    EventRepository,
    ProfileRepository,
    RegistrationRepository,
    StorageBackend,
)
from eventify.repositories.local import LocalBackend
from eventify.repositories.sql import SqlBackend

__all__ = [
    "EventRepository",
    "ProfileRepository",
    "RegistrationRepository",
    "StorageBackend",
    "LocalBackend",
    "SqlBackend",
]
