import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from habit_auth.core.time import utcnow
from habit_auth.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    phone = Column(String(20), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=True)
    timezone = Column(String(64), nullable=True)
    created_at_utc = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    challenges = relationship("Challenge", back_populates="user", cascade="all, delete-orphan")
    failed_login = relationship("FailedLogin", back_populates="user", uselist=False, cascade="all, delete-orphan")
