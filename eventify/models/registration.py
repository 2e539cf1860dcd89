"""Registration ORM model.

Participants are embedded as a JSON list. The partial unique index allows at
most one active registration per (event, user); cancelled rows do not count.
"""
import uuid
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Index, UniqueConstraint, Enum as SAEnum, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from eventify.database import Base
from eventify.domain import RegistrationStatus


class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (
        Index(
            "uq_registrations_active_event_user",
            "event_id",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
        Index("ix_registrations_user_status", "user_id", "status"),
        UniqueConstraint("user_id", "idempotency_key", name="uq_registrations_idempotency_key"),
    )

    registration_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    participants = Column(JSON, nullable=False)
    registered_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    status = Column(SAEnum(RegistrationStatus), nullable=False, default=RegistrationStatus.active)
    idempotency_key = Column(String(255), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    event = relationship("Event", back_populates="registrations")
