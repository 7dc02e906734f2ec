"""Failed validation history, at most one row per user."""
import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, ForeignKey, String
from sqlalchemy.orm import relationship

from habit_auth.core.time import as_utc
from habit_auth.db.base import Base


class FailedLogin(Base):
    __tablename__ = "failed_logins"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    # ISO-8601 UTC timestamps, oldest first
    failures = Column(JSON, nullable=False, default=list)

    user = relationship("User", back_populates="failed_login")

    @property
    def failure_times(self) -> list[datetime]:
        return [as_utc(datetime.fromisoformat(v)) for v in self.failures or []]

    def append_failure(self, at: datetime) -> None:
        # reassign so the JSON column is flagged dirty
        self.failures = [*(self.failures or []), as_utc(at).isoformat()]
