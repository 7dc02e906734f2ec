import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String

from habit_auth.core.time import utcnow
from habit_auth.db.base import Base


class LoginSession(Base):
    """Opaque client session handle; user_id is set once a challenge is answered."""
    __tablename__ = "login_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    disabled = Column(Boolean, default=False, nullable=False)
    created_at_utc = Column(DateTime(timezone=True), default=utcnow, nullable=False)
