"""Pydantic schemas for the phone + one-time-code login flow."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SessionResponse(BaseModel):
    session_id: str


class LoginRequest(BaseModel):
    """Request a code for the user registered with this phone number."""
    phone: str = Field(..., min_length=3, max_length=20)


class AttemptRequest(BaseModel):
    """Submit a code received by SMS."""
    phone: str = Field(..., min_length=3, max_length=20)
    code: str = Field(..., min_length=1, max_length=16)


class ResultResponse(BaseModel):
    """Outcome of a login or attempt; error is one of the ChallengeError values or UserNotFound."""
    ok: bool
    error: Optional[str] = None
    message: Optional[str] = None
    retry_at: Optional[datetime] = None


class MeResponse(BaseModel):
    session_id: str
    user_id: Optional[str] = None
