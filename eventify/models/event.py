"""Event ORM model — capacity is carried on the event row."""
import uuid
from sqlalchemy import Column, String, Text, Date, DateTime, Integer, ForeignKey, Index, CheckConstraint, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from eventify.database import Base
from eventify.domain import EventCategory


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_events_capacity_positive"),
        Index("ix_events_date_city_category", "date", "city", "category"),
    )

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    city = Column(String(100), nullable=False)
    category = Column(SAEnum(EventCategory), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # HH:MM
    location = Column(String(255), nullable=False)
    capacity = Column(Integer, nullable=False)
    image_url = Column(String(500), nullable=True)
    created_by = Column(String(36), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    registrations = relationship(
        "Registration", back_populates="event", cascade="all, delete-orphan", passive_deletes=True
    )
