"""One issued one-time code."""
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from habit_auth.core.time import utcnow
from habit_auth.db.base import Base


class Challenge(Base):
    """
    A numeric code sent to a user. There is no expiry column: a challenge is
    fresh while now - created_at_utc < max code age. Rows are never updated
    except for the single used False -> True flip.
    """
    __tablename__ = "challenges"
    __table_args__ = (
        Index("ix_challenges_user_id_created_at_utc", "user_id", "created_at_utc"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    code = Column(String(16), nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    created_at_utc = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="challenges")
