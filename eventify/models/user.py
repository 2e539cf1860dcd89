"""User ORM model — caller profile used for default participants."""
import uuid
from sqlalchemy import Column, String, Date, Boolean, DateTime
from sqlalchemy.sql import func
from eventify.database import Base


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(20), nullable=False, default="")
    birthdate = Column(Date, nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
