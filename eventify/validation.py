"""Validation of event drafts and participant lists through the API schemas.

The HTTP layer and the offline mirror both go through these functions, so
every backend rejects the same input with the same field-level detail.
pydantic errors are reported as a ``{field path: message}`` map, with list
items written as ``participants[1].email``.
"""
import dataclasses
import datetime as dt
from typing import Any, Iterable, Mapping, Sequence

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from eventify.domain import Participant
from eventify.errors import ValidationError
from eventify.schemas.event import EventCreate, EventUpdate
from eventify.schemas.registration import ParticipantList

_LOCATION_PREFIXES = ("body", "query", "path", "header")


def field_path(loc: Sequence[Any]) -> str:
    """Render a pydantic error location as a dotted path with [index] for list items."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif part not in _LOCATION_PREFIXES or path:
            path += f".{part}" if path else str(part)
    return path or "request"


def field_errors(errors: Iterable[Mapping[str, Any]]) -> dict[str, str]:
    fields: dict[str, str] = {}
    for error in errors:
        fields.setdefault(field_path(error["loc"]), error["msg"])
    return fields


def validate_model(model: type[BaseModel], data: Any, **context: Any) -> BaseModel:
    """Validate ``data`` against ``model``, raising the domain ValidationError."""
    try:
        return model.model_validate(data, context=context or None)
    except PydanticValidationError as exc:
        raise ValidationError(field_errors(exc.errors())) from None


def clean_event_fields(data: Mapping[str, Any], partial: bool = False) -> dict[str, Any]:
    """Validate and normalise event fields.

    With ``partial`` only the supplied keys are checked and returned (update
    patches); otherwise every required field must be present.
    """
    if partial:
        return validate_model(EventUpdate, dict(data)).changes()
    return validate_model(EventCreate, dict(data)).model_dump()


def _as_mapping(item: Any) -> Any:
    if isinstance(item, Participant):
        return dataclasses.asdict(item)
    if isinstance(item, BaseModel):
        return item.model_dump()
    return item


def clean_participants(participants: Iterable[Any], today: dt.date) -> tuple[Participant, ...]:
    """Validate a participant list: at least one entry, each fully filled in.

    Entries may be Participant instances, mappings or pydantic models.
    Emails are trimmed and lower-cased; birthdates after ``today`` are rejected.
    """
    items = [_as_mapping(item) for item in (participants or [])]
    cleaned = validate_model(ParticipantList, {"participants": items}, today=today)
    return tuple(Participant(**p.model_dump()) for p in cleaned.participants)
